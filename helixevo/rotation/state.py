from enum import Enum


class RotationState(str, Enum):
    ACTIVE = "active"
    BALANCE = "balance"
    STORAGE = "storage"
    MUTATION = "mutation"

    def next(self) -> "RotationState":
        return _CYCLE[(_CYCLE.index(self) + 1) % len(_CYCLE)]

    def previous(self) -> "RotationState":
        return _CYCLE[(_CYCLE.index(self) - 1) % len(_CYCLE)]

    @property
    def angle(self) -> int:
        return ANGLES[self]

    @property
    def label(self) -> str:
        return f"{self.angle}° ({self.value.capitalize()})"


_CYCLE: tuple[RotationState, ...] = (
    RotationState.ACTIVE,
    RotationState.BALANCE,
    RotationState.STORAGE,
    RotationState.MUTATION,
)

ANGLES: dict[RotationState, int] = {
    RotationState.ACTIVE: 0,
    RotationState.BALANCE: 90,
    RotationState.STORAGE: 180,
    RotationState.MUTATION: 270,
}

DEFAULT_STATE = RotationState.STORAGE


def steps_between(current: RotationState, target: RotationState) -> int:
    """Number of forward rotations needed to reach *target* from *current*."""
    return (_CYCLE.index(target) - _CYCLE.index(current)) % len(_CYCLE)


def suggested_state(signal_ratio: float) -> RotationState:
    """Map a T/G signal ratio onto the phase it argues for."""
    if signal_ratio > 1.5:
        return RotationState.ACTIVE
    if signal_ratio > 0.8:
        return RotationState.BALANCE
    if signal_ratio < 0.5:
        return RotationState.STORAGE
    return RotationState.MUTATION
