from __future__ import annotations

import io
import json

import pytest

from prime_cache import PrimeCache
from prime_engine import MAX_TARGET
from prime_shell import (
    InputFormatError,
    InputRangeError,
    SessionStats,
    build_arg_parser,
    format_listing,
    main,
    parse_target,
    run_session,
)


def run(commands: str, cache: PrimeCache = None, **kwargs):
    cache = PrimeCache() if cache is None else cache
    out = io.StringIO()
    stats = run_session(cache, io.StringIO(commands), out, **kwargs)
    return cache, out.getvalue(), stats


def test_parse_target_accepts_integers() -> None:
    assert parse_target("97") == 97
    assert parse_target(" 0 ") == 0
    assert parse_target(str(MAX_TARGET)) == MAX_TARGET


@pytest.mark.parametrize(
    "text",
    ["abc", "", "1.5", "0x10", "1_000", "9_7", "\u0669\u0667", "\uff19\uff17", str(MAX_TARGET + 1)],
)
def test_parse_target_rejects_non_integers(text: str) -> None:
    with pytest.raises(InputFormatError):
        parse_target(text)


def test_parse_target_rejects_negatives() -> None:
    with pytest.raises(InputRangeError):
        parse_target("-5")


def test_listing_uses_ten_columns_of_width_ten() -> None:
    cache = PrimeCache([2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37])
    rows = format_listing(cache)
    assert rows == [
        "".join(str(p).ljust(10) for p in (2, 3, 5, 7, 11, 13, 17, 19, 23, 29)),
        "31        37        ",
    ]


def test_listing_with_custom_columns() -> None:
    rows = format_listing(PrimeCache([2, 3, 5, 7, 11]), columns=2, width=4)
    assert rows == ["2   3   ", "5   7   ", "11  "]


def test_session_reports_verdicts() -> None:
    _, out, stats = run("0\n1\n2\n4\n3\n9\nexit\n")
    assert out.splitlines() == [
        "0 is not a prime.", "",
        "1 is a prime.", "",
        "2 is a prime (cached)", "",
        "4 is not a prime (even number)", "",
        "3 is a prime (cached)", "",
        "Skip creating potential factor primes",
        "9 is not a prime", "",
    ]
    assert stats.checks == 6


def test_session_extends_cache_for_large_target() -> None:
    cache, out, stats = run("10007\n91\nexit\n")
    lines = out.splitlines()
    assert lines[0].startswith("Creating potential factor primes finished in ")
    assert lines[0].endswith("seconds (currently 26 primes in cache)")
    assert lines[1] == "10007 is a prime"
    assert "91 is not a prime (cached)" in lines
    assert stats.primes_added == 24
    assert stats.cache_size_start == 2
    assert stats.cache_size_end == 26
    assert cache.max() == 101


def test_session_recovers_from_bad_input() -> None:
    _, out, stats = run("hello\n-3\n97\n")
    lines = out.splitlines()
    assert lines[0] == "Input must be an integer"
    assert lines[2] == "Integer must be positive"
    assert "97 is a prime" in lines
    assert stats.format_errors == 1
    assert stats.range_errors == 1


def test_session_stops_at_exit() -> None:
    _, out, stats = run("exit\n97\n")
    assert out == ""
    assert stats.checks == 0


def test_session_list_command() -> None:
    _, out, stats = run("list\n")
    assert out == "2         3         \nWrote out 2 prime numbers\n\n"
    assert stats.listings == 1


def test_session_writes_prompt() -> None:
    _, out, _ = run("exit\n", prompt="> ")
    assert out == "> "


def test_stats_serialise_verdict_counts() -> None:
    _, _, stats = run("2\n3\n4\n")
    data = stats.to_dict()
    assert data["verdicts"] == {"not_prime_by_parity": 1, "prime_cached": 2}
    assert data["checks"] == 3
    assert isinstance(SessionStats().to_dict()["extension"], dict)


def test_main_round_trips_cache_file(tmp_path) -> None:
    path = tmp_path / "primes.cache"
    out = io.StringIO()
    code = main(["--cache", str(path)], stdin=io.StringIO("10007\nexit\n"), out=out)
    assert code == 0
    lines = out.getvalue().splitlines()
    assert lines[0].startswith("Couldn't load cache, starting from scratch (")
    assert lines[-1] == "Wrote cache of 26 primes to disk"
    assert PrimeCache.load(str(path)).max() == 101

    out = io.StringIO()
    code = main(["--cache", str(path)], stdin=io.StringIO("97\n"), out=out)
    assert code == 0
    assert out.getvalue().splitlines()[:2] == ["Loaded cache of 26 primes from disk", "97 is a prime (cached)"]


def test_main_falls_back_on_corrupt_cache(tmp_path) -> None:
    path = tmp_path / "primes.cache"
    path.write_text("2\n3\n5\nbroken\n")
    out = io.StringIO()
    code = main(["--cache", str(path)], stdin=io.StringIO("list\n"), out=out)
    assert code == 0
    assert "Wrote out 2 prime numbers" in out.getvalue()
    assert path.read_text() == "2\n3\n"


def test_main_exit_code_when_cache_unwritable(tmp_path) -> None:
    path = tmp_path / "missing" / "primes.cache"
    out = io.StringIO()
    code = main(["--cache", str(path)], stdin=io.StringIO("exit\n"), out=out)
    assert code == 1
    assert out.getvalue().splitlines()[-1].startswith("Couldnt write cache to disk: ")


def test_main_writes_stats_json(tmp_path) -> None:
    cache_path = tmp_path / "primes.cache"
    stats_path = tmp_path / "session.json"
    out = io.StringIO()
    code = main(["--cache", str(cache_path), "--stats", str(stats_path)],
                stdin=io.StringIO("97\nfoo\n"), out=out)
    assert code == 0
    assert f"[saved] {stats_path}" in out.getvalue()
    data = json.loads(stats_path.read_text())
    assert data["checks"] == 1
    assert data["rejected"] == {"format": 1, "range": 0}
    assert data["cache"]["end"] == len(PrimeCache.load(str(cache_path)))


def test_main_writes_spiral_png(tmp_path) -> None:
    pytest.importorskip("matplotlib")
    cache_path = tmp_path / "primes.cache"
    png_path = tmp_path / "spiral.png"
    out = io.StringIO()
    code = main(["--cache", str(cache_path), "--png", str(png_path)],
                stdin=io.StringIO("1000003\n"), out=out)
    assert code == 0
    assert png_path.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_session_ignores_undecodable_input(tmp_path) -> None:
    path = tmp_path / "primes.cache"
    stdin = io.TextIOWrapper(io.BytesIO(b"\xff\xfe\n97\nexit\n"), encoding="utf-8")
    out = io.StringIO()
    code = main(["--cache", str(path)], stdin=stdin, out=out)
    assert code == 0
    lines = out.getvalue().splitlines()
    assert lines[1] == "Input must be an integer"
    assert "97 is a prime" in lines
    assert PrimeCache.load(str(path)).max() >= 11


def test_session_treats_digit_separators_as_bad_input() -> None:
    _, out, stats = run("9_7\n")
    assert out == "Input must be an integer\n\n"
    assert stats.checks == 0


def test_main_unsupported_png_format_keeps_exit_code(tmp_path) -> None:
    pytest.importorskip("matplotlib")
    cache_path = tmp_path / "primes.cache"
    png_path = tmp_path / "spiral.xyz"
    out = io.StringIO()
    code = main(["--cache", str(cache_path), "--png", str(png_path)],
                stdin=io.StringIO("97\n"), out=out)
    assert code == 0
    assert out.getvalue().splitlines()[-1].startswith(f"[warn] could not write PNG to {png_path}")
    assert cache_path.exists()


def test_main_png_style_flags(tmp_path) -> None:
    pytest.importorskip("matplotlib")
    png_path = tmp_path / "spiral.png"
    out = io.StringIO()
    code = main(["--cache", str(tmp_path / "primes.cache"), "--png", str(png_path),
                 "--png-bw", "--no-png-grid", "--no-png-labels"],
                stdin=io.StringIO("10007\n"), out=out)
    assert code == 0
    assert f"[saved] {png_path}" in out.getvalue()
    assert png_path.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_png_style_flags_default_on() -> None:
    args = build_arg_parser().parse_args([])
    assert (args.png_bw, args.png_grid, args.png_labels) == (False, True, True)


def test_shell_does_not_import_plotting_at_module_level() -> None:
    import prime_shell

    assert not hasattr(prime_shell, "prime_spiral")
    assert not hasattr(prime_shell, "plt")
