from enum import Enum


class ScoreLevel(str, Enum):
    VIRUS = "Virus"
    BACTERIA = "Bacteria"
    WORM = "Worm"
    MAMMAL = "Mammal"
    PRIMATE = "Primate"
    HUMAN = "Human"
    DIVINE = "Divine"
    TRANSCENDENTAL = "Transcendental"


# Lower bound of each tier, ascending.
LEVEL_THRESHOLDS: tuple[tuple[int, ScoreLevel], ...] = (
    (0, ScoreLevel.VIRUS),
    (500, ScoreLevel.BACTERIA),
    (1000, ScoreLevel.WORM),
    (1500, ScoreLevel.MAMMAL),
    (3000, ScoreLevel.PRIMATE),
    (10000, ScoreLevel.HUMAN),
    (20000, ScoreLevel.DIVINE),
    (50000, ScoreLevel.TRANSCENDENTAL),
)


def classify(score: int) -> ScoreLevel:
    level = ScoreLevel.VIRUS
    for threshold, candidate in LEVEL_THRESHOLDS:
        if score < threshold:
            break
        level = candidate
    return level
