"""Die sources.

Every roll in the engine draws d20 faces from an injectable source so a
fixed sequence can stand in for randomness (debug rolls, tests).
"""

import logging
import random
from typing import Iterable, Protocol

from tierdice.dice.types import DIE_MAX, DIE_MIN
from tierdice.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

# Pool size of a standard check
POOL_SIZE = 3


class DieSource(Protocol):
    """Anything that produces uniform d20 faces."""

    def roll(self) -> int:
        """Return one face in [1, 20]."""
        ...


class RandomDieSource:
    """Uniform d20 source backed by random.Random."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def roll(self) -> int:
        return self._rng.randint(DIE_MIN, DIE_MAX)


class FixedDieSource:
    """Yields predetermined faces in order.

    Used for debug roll overrides and deterministic tests.

    Examples:
        >>> source = FixedDieSource([15, 18, 20])
        >>> roll_pool(source, 3)
        (15, 18, 20)
    """

    def __init__(self, faces: Iterable[int]) -> None:
        self._faces = list(faces)
        for face in self._faces:
            _validate_face(face)
        self._position = 0

    @property
    def remaining(self) -> int:
        """Number of faces not yet drawn."""
        return len(self._faces) - self._position

    def roll(self) -> int:
        if self._position >= len(self._faces):
            raise InvalidInputError(
                f"Fixed die sequence exhausted after {len(self._faces)} rolls",
                field="dice",
            )
        face = self._faces[self._position]
        self._position += 1
        return face


def _validate_face(face: int) -> None:
    if not isinstance(face, int) or isinstance(face, bool) or not DIE_MIN <= face <= DIE_MAX:
        raise InvalidInputError(
            f"Die face must be an integer between {DIE_MIN} and {DIE_MAX}, got {face!r}",
            field="dice",
            value=face,
        )


def roll_pool(source: DieSource, count: int = POOL_SIZE) -> tuple[int, ...]:
    """Roll a pool of d20s.

    Args:
        source: Die source to draw from.
        count: Number of dice (1-3).

    Returns:
        Tuple of faces in rolled order.

    Raises:
        InvalidInputError: If count is outside 1-3.
    """
    if not 1 <= count <= POOL_SIZE:
        raise InvalidInputError(
            f"Dice pool size must be between 1 and {POOL_SIZE}, got {count}",
            field="pool_size",
            value=count,
        )
    faces = tuple(source.roll() for _ in range(count))
    for face in faces:
        _validate_face(face)
    logger.debug(f"Rolled {count}d20: {faces}")
    return faces


def parse_fixed_dice(text: str) -> list[int]:
    """Parse a comma separated debug roll like "15,18,20".

    Args:
        text: Faces separated by commas (whitespace allowed).

    Returns:
        List of faces.

    Raises:
        InvalidInputError: If any entry is not an integer in [1, 20].

    Examples:
        >>> parse_fixed_dice("3, 9,20")
        [3, 9, 20]
    """
    faces: list[int] = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            face = int(part)
        except ValueError as e:
            raise InvalidInputError(
                f"Invalid die face: '{part}'", field="dice", value=part
            ) from e
        _validate_face(face)
        faces.append(face)
    if not faces:
        raise InvalidInputError("No die faces given", field="dice", value=text)
    return faces
