# prime_engine.py
"""
Primality Engine: trial division against a growable prime cache.

Before a target above the cached range is tested, the cache is extended
with every prime up to isqrt(target). Each new factor prime is itself
validated by trial division against the smaller primes already cached, so
the extension bootstraps from the seed.

Cheapest checks come first:
  0                -> not prime
  1                -> prime (kept as a convention of this tool)
  even, > 2        -> not prime
  cached           -> prime
  <= max(cache)    -> not prime (completeness of the cache)
  otherwise        -> extend, then trial-divide
"""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass
from math import isqrt
from typing import Optional

from prime_cache import PrimeCache


MAX_TARGET = 2 ** 63 - 1  # signed 64-bit range


class Verdict(enum.Enum):
    NOT_PRIME = "not_prime"
    PRIME_BY_CONVENTION = "prime_by_convention"
    NOT_PRIME_BY_PARITY = "not_prime_by_parity"
    PRIME_CACHED = "prime_cached"
    NOT_PRIME_CACHED = "not_prime_cached"
    PRIME_COMPUTED = "prime_computed"
    NOT_PRIME_COMPUTED = "not_prime_computed"

    @property
    def is_prime(self) -> bool:
        return self in (Verdict.PRIME_BY_CONVENTION, Verdict.PRIME_CACHED, Verdict.PRIME_COMPUTED)

    @property
    def cached(self) -> bool:
        return self in (Verdict.PRIME_CACHED, Verdict.NOT_PRIME_CACHED)


@dataclass(frozen=True)
class Extension:
    """Outcome of growing the cache for one target."""
    added: int
    seconds: float
    skipped: bool


@dataclass(frozen=True)
class CheckResult:
    target: int
    verdict: Verdict
    extension: Optional[Extension] = None

    @property
    def is_prime(self) -> bool:
        return self.verdict.is_prime


# ------------------------- Trial division -------------------------

def is_prime_by_trial_division(candidate: int, cache: PrimeCache) -> bool:
    """
    True iff no cached prime <= isqrt(candidate) divides candidate.
    Requires every prime up to isqrt(candidate) to be cached already;
    extend_factor_primes establishes that before any call.
    """
    bound = isqrt(candidate)
    assert cache.max() >= bound, f"factor primes end at {cache.max()}, need {bound}"
    for p in cache.factors_up_to(bound):
        if candidate % p == 0:
            return False
    return True


def extend_factor_primes(cache: PrimeCache, target: int) -> Extension:
    """Append every missing prime up to isqrt(target) to the cache."""
    bound = isqrt(target)
    last = cache.max()
    if last >= bound:
        return Extension(added=0, seconds=0.0, skipped=True)

    t0 = time.time()
    added = 0
    # odd candidates only; a cache of just {2} continues at 3
    candidate = last + 1 if last % 2 == 0 else last + 2
    while last < bound:
        if is_prime_by_trial_division(candidate, cache):
            cache.append(candidate)
            last = candidate
            added += 1
        candidate += 2
    return Extension(added=added, seconds=time.time() - t0, skipped=False)


# ------------------------- Check -------------------------

def check(target: int, cache: PrimeCache) -> CheckResult:
    """
    Decide primality of target (>= 0), growing cache as a side effect.
    Negative targets are the caller's to reject.
    """
    if target < 0:
        raise ValueError(f"target must be non-negative, got {target}")

    if target == 0:
        return CheckResult(target, Verdict.NOT_PRIME)
    if target == 1:
        return CheckResult(target, Verdict.PRIME_BY_CONVENTION)
    if target % 2 == 0 and target != 2:
        return CheckResult(target, Verdict.NOT_PRIME_BY_PARITY)
    if target in cache:
        return CheckResult(target, Verdict.PRIME_CACHED)
    if target < cache.max():
        return CheckResult(target, Verdict.NOT_PRIME_CACHED)

    ext = extend_factor_primes(cache, target)
    if is_prime_by_trial_division(target, cache):
        return CheckResult(target, Verdict.PRIME_COMPUTED, ext)
    return CheckResult(target, Verdict.NOT_PRIME_COMPUTED, ext)
