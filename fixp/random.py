"""
Deterministic random draws shared by synchronized peers.

Every peer seeds its SyncRandom identically and performs the same draws in the same
order; a draw skipped on one peer but not on another desynchronizes the session.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import logging
import random
import zlib
from typing import Protocol, runtime_checkable

# Local ----------------------------------------------------------------------------------------------------------------
from .formatters import fmt_operand

logger = logging.getLogger(__name__)


# Classes --------------------------------------------------------------------------------------------------------------

@runtime_checkable
class RandomSource(Protocol):
    """Draws a uniform int in [0, n), optionally tagged for diagnostic logging."""

    def get_int(self, n: int, tag: str | None = None, *log_data: int) -> int: ...


class SyncRandom:
    """
    Seeded RandomSource on top of random.Random.

    The Mersenne Twister sequence for a given seed is the same on every platform.

    Args:
        seed: Base seed, reduced to 32 bits.

    Attributes:
        draws (int): Number of draws taken so far, handy for comparing peers.
    """

    def __init__(self, seed: int = 0):
        if isinstance(seed, bool) or not isinstance(seed, int):
            raise TypeError(f"seed must be an int: {fmt_operand(seed)}")
        self._seed = seed & 0xFFFFFFFF
        self._rng = random.Random(self._seed)
        self.draws = 0

    def __repr__(self) -> str:
        return f"SyncRandom(seed={self._seed}, draws={self.draws})"

    @property
    def seed(self) -> int:
        return self._seed

    def get_int(self, n: int, tag: str | None = None, *log_data: int) -> int:
        """
        Uniform int in [0, n).

        Raises:
            TypeError: If n is not an int.
            ValueError: If n is not positive.
        """
        if isinstance(n, bool) or not isinstance(n, int):
            raise TypeError(f"n must be an int: {fmt_operand(n)}")
        if n <= 0:
            raise ValueError(f"n must be positive, got {n}")

        value = self._rng.randrange(n)
        self.draws += 1
        if tag is not None:
            logger.debug("random draw #%d %s: %d in [0, %d) %s", self.draws, tag, value, n, log_data)
        return value

    def substream(self, tag: str) -> "SyncRandom":
        """
        Independent generator derived from the base seed and a tag.

        Uses CRC-32 of the tag, never the built-in hash(), which is randomized per process.
        """
        crc = zlib.crc32(str(tag).encode("utf-8")) & 0xFFFFFFFF
        return SyncRandom(self._seed ^ crc)
