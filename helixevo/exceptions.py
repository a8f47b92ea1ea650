class HelixEvoError(Exception):
    """Base for all helixevo exceptions."""

    pass


# High-level families
class ValidationError(HelixEvoError):
    """Malformed input rejected before any computation starts."""

    pass


class StorageError(HelixEvoError):
    """Storage operation failures."""

    pass


class EvolutionError(HelixEvoError):
    """An evolution attempt ended without producing an entity."""

    pass


class EconomyError(HelixEvoError):
    """Economic collaborator failures."""

    pass


# Storage subtypes
class StoreUnavailableError(StorageError):
    """The store could not be reached."""

    pass


class EntityNotFoundError(StorageError):
    """No entity is stored under the requested id."""

    def __init__(self, entity_id: str):
        super().__init__(f"Entity {entity_id} not found")
        self.entity_id = entity_id


# Evolution subtypes (terminal for the attempt, never retried by the engine)
class SenescenceError(EvolutionError):
    """Aging budget exhausted or division refused."""

    pass


class ProtectionLostError(EvolutionError):
    """No protection copies left."""

    pass
