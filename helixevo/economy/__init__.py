from helixevo.economy.collaborator import (
    EconomicCollaborator,
    EconomicEvent,
    EconomicEventKind,
    EconomyStats,
    RecordingEconomy,
)

__all__ = [
    "EconomicCollaborator",
    "EconomicEvent",
    "EconomicEventKind",
    "EconomyStats",
    "RecordingEconomy",
]
