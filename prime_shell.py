#!/usr/bin/env python3
"""
Prime Cache Shell: interactive primality checker

Reads one command per line from stdin:
  exit      persist the cache and quit (end of input does the same)
  list      print every cached prime in fixed-width columns
  <integer> report whether the integer is prime, growing the cache on demand

The cache is loaded from disk at start (falling back to {2, 3}) and written
back on exit. The exit code is 0 when the cache was saved, 1 otherwise.

Usage examples:
  - Default cache file in the working directory:
      python prime_shell.py

  - Custom cache, session stats and a spiral of the cache on exit:
      python prime_shell.py --cache big.cache --stats session.json --png spiral.png

  - Scripted:
      printf '97\\n10007\\nlist\\nexit\\n' | python prime_shell.py
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, TextIO

from prime_cache import CachePersistError, PrimeCache, load_or_seed, parse_decimal
from prime_engine import MAX_TARGET, CheckResult, Verdict, check


__CLI_VERSION__ = "1.0"

CACHE_FILE = "primes.cache"
LIST_TAB_COUNT = 10
LIST_TAB_PADDING = 10


class InputFormatError(ValueError):
    pass


class InputRangeError(ValueError):
    pass


# ------------------------- Session stats -------------------------

@dataclass
class SessionStats:
    cache_size_start: int = 0
    cache_size_end: int = 0
    checks: int = 0
    primes_added: int = 0
    extension_seconds: float = 0.0
    format_errors: int = 0
    range_errors: int = 0
    listings: int = 0
    verdicts: Dict[str, int] = field(default_factory=dict)

    def record(self, result: CheckResult) -> None:
        self.checks += 1
        key = result.verdict.value
        self.verdicts[key] = self.verdicts.get(key, 0) + 1
        ext = result.extension
        if ext is not None and not ext.skipped:
            self.primes_added += ext.added
            self.extension_seconds += ext.seconds

    def to_dict(self) -> Dict[str, object]:
        return {
            "cache": {"start": self.cache_size_start, "end": self.cache_size_end},
            "checks": self.checks,
            "verdicts": dict(sorted(self.verdicts.items())),
            "extension": {"primes_added": self.primes_added, "seconds": self.extension_seconds},
            "rejected": {"format": self.format_errors, "range": self.range_errors},
            "listings": self.listings,
        }


# ------------------------- Formatting -------------------------

def parse_target(text: str) -> int:
    try:
        n = parse_decimal(text)
    except ValueError:
        raise InputFormatError("Input must be an integer") from None
    # beyond the signed 64-bit range is not an integer this tool accepts
    if n > MAX_TARGET or n < -MAX_TARGET - 1:
        raise InputFormatError("Input must be an integer")
    if n < 0:
        raise InputRangeError("Integer must be positive")
    return n


def format_listing(cache: PrimeCache,
                   columns: int = LIST_TAB_COUNT,
                   width: int = LIST_TAB_PADDING) -> List[str]:
    """Rows of `columns` primes, each left-aligned in `width` characters."""
    rows: List[str] = []
    row: List[str] = []
    for p in cache:
        row.append(str(p).ljust(width))
        if len(row) >= columns:
            rows.append("".join(row))
            row = []
    if row:
        rows.append("".join(row))
    return rows


def describe(result: CheckResult, cache_size: int) -> List[str]:
    n = result.target
    v = result.verdict
    if v is Verdict.NOT_PRIME:
        return [f"{n} is not a prime."]
    if v is Verdict.PRIME_BY_CONVENTION:
        return [f"{n} is a prime."]
    if v is Verdict.NOT_PRIME_BY_PARITY:
        return [f"{n} is not a prime (even number)"]
    if v is Verdict.PRIME_CACHED:
        return [f"{n} is a prime (cached)"]
    if v is Verdict.NOT_PRIME_CACHED:
        return [f"{n} is not a prime (cached)"]

    lines: List[str] = []
    ext = result.extension
    if ext is None or ext.skipped:
        lines.append("Skip creating potential factor primes")
    else:
        lines.append(
            f"Creating potential factor primes finished in {ext.seconds:.3f} seconds "
            f"(currently {cache_size} primes in cache)")
    if v is Verdict.PRIME_COMPUTED:
        lines.append(f"{n} is a prime")
    else:
        lines.append(f"{n} is not a prime")
    return lines


# ------------------------- Session -------------------------

def run_session(cache: PrimeCache, stdin: TextIO, out: TextIO, *,
                prompt: str = "",
                columns: int = LIST_TAB_COUNT,
                width: int = LIST_TAB_PADDING,
                stats: Optional[SessionStats] = None) -> SessionStats:
    """Request loop; returns on `exit` or end of input."""
    if stats is None:
        stats = SessionStats()
    stats.cache_size_start = len(cache)

    while True:
        if prompt:
            out.write(prompt)
            out.flush()
        try:
            line = stdin.readline()
        except UnicodeDecodeError:
            stats.format_errors += 1
            print("Input must be an integer\n", file=out)
            continue
        if not line:
            break
        text = line.strip()
        if text == "exit":
            break

        if text == "list":
            for row in format_listing(cache, columns, width):
                print(row, file=out)
            print(f"Wrote out {len(cache)} prime numbers\n", file=out)
            stats.listings += 1
            continue

        try:
            n = parse_target(text)
        except InputRangeError as e:
            stats.range_errors += 1
            print(f"{e}\n", file=out)
            continue
        except InputFormatError as e:
            stats.format_errors += 1
            print(f"{e}\n", file=out)
            continue

        result = check(n, cache)
        stats.record(result)
        msgs = describe(result, len(cache))
        for msg in msgs[:-1]:
            print(msg, file=out)
        print(f"{msgs[-1]}\n", file=out)

    stats.cache_size_end = len(cache)
    return stats


def save_cache(cache: PrimeCache, path: str, out: TextIO) -> int:
    try:
        cache.persist(path)
    except CachePersistError as e:
        print(f"Couldnt write cache to disk: {e}", file=out)
        return 1
    print(f"Wrote cache of {len(cache)} primes to disk", file=out)
    return 0


def save_stats(stats: SessionStats, path: str, out: TextIO) -> None:
    try:
        with open(path, "w") as jf:
            json.dump(stats.to_dict(), jf, indent=2)
    except OSError as e:
        print(f"[warn] could not write stats to {path}: {e}", file=out)
        return
    print(f"[saved] {path}", file=out)


def save_png(cache: PrimeCache, path: str, out: TextIO, *,
             bw: bool = False,
             show_grid: bool = True,
             show_labels: bool = True) -> None:
    # matplotlib is only imported when a PNG is asked for
    import prime_spiral

    if not prime_spiral.HAVE_MPL:
        print("[warn] matplotlib not available; skipping PNG", file=out)
        return
    try:
        prime_spiral.save_spiral_png(cache.primes(), path, bw=bw,
                                     show_grid=show_grid, show_labels=show_labels)
    except (OSError, ValueError, RuntimeError) as e:
        print(f"[warn] could not write PNG to {path}: {e}", file=out)
        return
    print(f"[saved] {path}", file=out)


# ------------------------- CLI -------------------------

def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Prime Cache Shell: interactive primality checker with a persisted prime cache.")
    p.add_argument("--cache", type=str, default=CACHE_FILE, help=f"Cache file (default {CACHE_FILE}).")
    p.add_argument("--columns", type=int, default=LIST_TAB_COUNT, help="Primes per row for 'list' (default 10).")
    p.add_argument("--column-width", type=int, default=LIST_TAB_PADDING, help="Column width for 'list' (default 10).")
    p.add_argument("--prompt", type=str, default="", help="Prompt printed before each command (default none).")
    p.add_argument("--stats", type=str, default=None, help="Optional session stats JSON path, written on exit.")
    p.add_argument("--png", type=str, default=None, help="Optional spiral PNG of the cache, written on exit.")
    p.add_argument("--png-bw", action="store_true", help="Render the PNG in black & white.")
    p.add_argument("--png-grid", dest="png_grid", action="store_true", default=True, help="Show grid lines (default).")
    p.add_argument("--no-png-grid", dest="png_grid", action="store_false")
    p.add_argument("--png-labels", dest="png_labels", action="store_true", default=True, help="Show axis labels (default).")
    p.add_argument("--no-png-labels", dest="png_labels", action="store_false")
    p.add_argument("--version", action="version", version=f"%(prog)s {__CLI_VERSION__}")
    return p


def main(argv: Optional[List[str]] = None,
         stdin: Optional[TextIO] = None,
         out: Optional[TextIO] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    stdin = sys.stdin if stdin is None else stdin
    out = sys.stdout if out is None else out
    # undecodable bytes become U+FFFD and are rejected like any non-integer
    if hasattr(stdin, "reconfigure"):
        stdin.reconfigure(errors="replace")

    if args.columns < 1 or args.column_width < 1:
        print("[warn] --columns and --column-width must be >= 1; using defaults", file=out)
        args.columns, args.column_width = LIST_TAB_COUNT, LIST_TAB_PADDING

    cache, msg = load_or_seed(args.cache)
    print(msg, file=out)

    stats = run_session(cache, stdin, out,
                        prompt=args.prompt,
                        columns=args.columns,
                        width=args.column_width)

    code = save_cache(cache, args.cache, out)
    if args.stats:
        save_stats(stats, args.stats, out)
    if args.png:
        save_png(cache, args.png, out,
                 bw=args.png_bw,
                 show_grid=args.png_grid,
                 show_labels=args.png_labels)
    return code


if __name__ == "__main__":
    sys.exit(main())
