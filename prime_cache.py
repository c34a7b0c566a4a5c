# prime_cache.py
"""
Prime Cache: ascending, gap-free list of known primes with a flat-file store.

Every prime <= max() is present, so absence below max() proves compositeness.
The on-disk form is one decimal integer per line, ascending, no header.
"""

from __future__ import annotations

import os
import re
from bisect import bisect_left, bisect_right
from itertools import islice
from typing import Iterable, Iterator, List, Tuple


DEFAULT_SEED: Tuple[int, ...] = (2, 3)

# ASCII base-10 only: no digit separators, no digits from other scripts
DECIMAL_RE = re.compile(r"[+-]?[0-9]+")


def parse_decimal(text: str) -> int:
    """Parse a signed base-10 integer, surrounding whitespace allowed."""
    s = text.strip()
    if not DECIMAL_RE.fullmatch(s):
        raise ValueError(f"invalid integer {text!r}")
    return int(s)


# ------------------------- Errors -------------------------

class CacheError(Exception):
    """Base class for cache store failures."""


class CacheLoadError(CacheError):
    """Persisted cache missing, unreadable or malformed."""


class CachePersistError(CacheError):
    """Persisted cache could not be written."""


# ------------------------- Cache -------------------------

class PrimeCache:
    """
    Ordered set of discovered primes. Grows only by appending a prime
    strictly larger than the current maximum.
    """

    def __init__(self, primes: Iterable[int] = DEFAULT_SEED):
        self._primes: List[int] = []
        for p in primes:
            self.append(p)
        if not self._primes:
            raise ValueError("prime cache cannot be empty")

    def __contains__(self, n: int) -> bool:
        i = bisect_left(self._primes, n)
        return i < len(self._primes) and self._primes[i] == n

    def __len__(self) -> int:
        return len(self._primes)

    def __iter__(self) -> Iterator[int]:
        # snapshot: later appends do not leak into an ongoing iteration
        return iter(tuple(self._primes))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PrimeCache):
            return NotImplemented
        return self._primes == other._primes

    def __repr__(self) -> str:
        return f"PrimeCache(size={len(self._primes)}, max={self._primes[-1] if self._primes else None})"

    def max(self) -> int:
        return self._primes[-1]

    def primes(self) -> Tuple[int, ...]:
        return tuple(self._primes)

    def factors_up_to(self, bound: int) -> Iterator[int]:
        """Ascending cached primes p <= bound, without copying the list."""
        return islice(self._primes, 0, bisect_right(self._primes, bound))

    def append(self, p: int) -> None:
        """Add a prime larger than max(). The caller vouches for primality."""
        if p < 2:
            raise ValueError(f"{p} is not a prime")
        if self._primes and p <= self._primes[-1]:
            raise ValueError(f"{p} must be greater than largest cached prime {self._primes[-1]}")
        self._primes.append(p)

    # ------------------------- Store -------------------------

    @classmethod
    def load(cls, path: str) -> "PrimeCache":
        """
        Parse a persisted cache. Any defect fails the whole load; there is
        no partial result.
        """
        try:
            with open(path, "r") as f:
                lines = f.read().splitlines()
        except (OSError, UnicodeDecodeError) as e:
            raise CacheLoadError(str(e)) from e

        if not lines:
            raise CacheLoadError(f"{path} is empty")

        values: List[int] = []
        for line_num, line in enumerate(lines, 1):
            try:
                values.append(parse_decimal(line))
            except ValueError as e:
                raise CacheLoadError(f"line {line_num}: invalid integer {line!r}") from e

        if values[0] != 2:
            raise CacheLoadError(f"{path} does not start at 2")

        try:
            return cls(values)
        except ValueError as e:
            raise CacheLoadError(str(e)) from e

    def persist(self, path: str) -> None:
        """
        Overwrite path with every prime, one per line, ascending. The new
        content goes to a sibling file first and is swapped in whole, so a
        failed write leaves the previous cache untouched.
        """
        tmp_path = f"{path}.tmp"
        try:
            with open(tmp_path, "w") as f:
                f.write("".join(f"{p}\n" for p in self._primes))
            os.replace(tmp_path, path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise CachePersistError(str(e)) from e


def load_or_seed(path: str) -> Tuple[PrimeCache, str]:
    """
    Load the persisted cache, falling back to DEFAULT_SEED.
    Returns (cache, message) where message is ready for the user.
    """
    try:
        cache = PrimeCache.load(path)
    except CacheLoadError as e:
        return PrimeCache(DEFAULT_SEED), f"Couldn't load cache, starting from scratch ({e})"
    return cache, f"Loaded cache of {len(cache)} primes from disk"
