import enum
import math

MIN_SCORE = 1
MAX_SCORE = 100

# Scores below this are lifted to PASS_THROUGH_FLOOR_VALUE.
PASS_THROUGH_FLOOR_BELOW = 10
PASS_THROUGH_FLOOR_VALUE = 5

# (raw_low, raw_high, adjusted_low, adjusted_high), checked top-down.
GENEROUS_BANDS = (
    (75, 100, 90, 100),
    (60, 74, 80, 89),
    (40, 59, 65, 79),
    (1, 39, 40, 64),
)


class Normalization(str, enum.Enum):
    PASS_THROUGH_FLOOR = "pass_through_floor"
    GENEROUS_REMAP = "generous_remap"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _check_range(raw_score: int) -> None:
    if not MIN_SCORE <= raw_score <= MAX_SCORE:
        raise ValueError(f"Raw score must be between 1 and 100, got {raw_score}.")


def pass_through_floor(raw_score: int) -> int:
    """Return the score unchanged, except very low scores are floored to 5."""
    _check_range(raw_score)
    if raw_score < PASS_THROUGH_FLOOR_BELOW:
        return max(PASS_THROUGH_FLOOR_VALUE, raw_score)
    return raw_score


def generous_remap(raw_score: int) -> int:
    """Linearly remap ``raw_score`` into the more encouraging band it falls in."""
    _check_range(raw_score)
    for raw_low, raw_high, adj_low, adj_high in GENEROUS_BANDS:
        if raw_score >= raw_low:
            fraction = (raw_score - raw_low) / (raw_high - raw_low)
            adjusted = _round_half_up(adj_low + fraction * (adj_high - adj_low))
            return min(MAX_SCORE, adjusted)
    # unreachable: the last band starts at MIN_SCORE
    raise ValueError(f"No band for raw score {raw_score}.")


_NORMALIZERS = {
    Normalization.PASS_THROUGH_FLOOR: pass_through_floor,
    Normalization.GENEROUS_REMAP: generous_remap,
}


def normalize(raw_score: int, normalization: Normalization) -> int:
    return _NORMALIZERS[normalization](raw_score)
