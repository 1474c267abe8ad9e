"""
Runtime metadata generation table and support checks.

Exposes one immutable record per metadata generation (V0 through V8) and helpers to ask
whether a discriminant names a known generation and whether desub can decode it. This
module is zero-IO.

Notes:
    - Generations 0-7 are permanently unsupported placeholders; their payload type has no
      valid instances, so decoding them always fails.
    - Generation 8 is the current generation (CURRENT_GENERATION).
    - Introducing, removing or reordering a record field is a new generation, never a patch.
"""

from dataclasses import dataclass

from .constants import CURRENT_GENERATION, GENERATION_COUNT

__all__ = [
    "MetadataGeneration",
    "GENERATIONS",
    "CURRENT",
    "get_generation",
    "is_known",
    "is_supported",
]


@dataclass(frozen=True)
class MetadataGeneration:
    """
    Immutable description of one metadata generation.

    Attributes:
        number (int): Wire discriminant (0-8).
        supported (bool): Whether payloads of this generation can be decoded.
        label (str): Display label, e.g. ``"V8"``.

    Raises:
        ValueError: If number is negative.
    """

    number: int
    supported: bool
    label: str

    def __post_init__(self) -> None:
        if self.number < 0:
            raise ValueError(f"MetadataGeneration number must be non-negative, got {self.number}")


GENERATIONS: tuple[MetadataGeneration, ...] = tuple(
    MetadataGeneration(n, n == CURRENT_GENERATION, f"V{n}") for n in range(GENERATION_COUNT)
)
CURRENT = GENERATIONS[CURRENT_GENERATION]


def is_known(number: int) -> bool:
    """Return True if `number` is a generation discriminant (0-8)."""
    return 0 <= number < GENERATION_COUNT


def get_generation(number: int) -> MetadataGeneration:
    """
    Look up a generation by discriminant.

    Raises:
        KeyError: If `number` is not a known generation.

    Examples:
        >>> from desub.core.versioning import get_generation
        >>> get_generation(8).supported
        True
        >>> get_generation(3).label
        'V3'
    """
    if not is_known(number):
        raise KeyError(f"unknown metadata generation {number}")
    return GENERATIONS[number]


def is_supported(number: int) -> bool:
    """Return True if payloads of generation `number` can be decoded."""
    return is_known(number) and GENERATIONS[number].supported
