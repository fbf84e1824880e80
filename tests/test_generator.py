# tests/test_generator.py
import logging

from config import GeneratorConfig
from generator import generate_to_file, generate_tsume
from models import RunStats
from search_session import SearchSession
from test_simulator import script_mate

PUZZLE = "1kr/pbp/3/PBP/RK1 b - 3"


def test_generate_tsume_first_checkmate_wins(scripted):
    ch = scripted(script_mate)
    assert generate_tsume(SearchSession(ch)) == PUZZLE
    assert ch.newgames == 1


def test_generate_tsume_gives_up_after_max_attempts(scripted):
    ch = scripted(lambda moves, ms: ["bestmove resign"])
    config = GeneratorConfig(max_attempts=3)
    stats = RunStats()
    assert generate_tsume(SearchSession(ch, config), config, stats) is None
    assert ch.newgames == 3
    assert stats.errors == 3 and stats.no_result == 0


def test_generate_tsume_counts_no_result(scripted):
    def shuffle(moves, ms):
        tok = ["2e2d", "2a2b", "2d2e", "2b2a"][len(moves) % 4]
        return [f"info multipv 1 score cp 0 pv {tok}", f"bestmove {tok}"]

    config = GeneratorConfig(max_attempts=2, max_moves=4)
    stats = RunStats()
    assert generate_tsume(SearchSession(scripted(shuffle), config), config, stats) is None
    assert stats.no_result == 2 and stats.errors == 0


def test_generate_to_file_writes_one_line_per_puzzle(scripted, tmp_path):
    out = tmp_path / "results.sfen"
    seen = []
    stats = generate_to_file(SearchSession(scripted(script_mate)), out, 3, on_slot=seen.append)
    assert out.read_text(encoding="utf-8") == (PUZZLE + "\n") * 3
    assert stats.requested == 3 and stats.written == 3 and stats.misses == 0
    assert seen == [PUZZLE] * 3
    assert stats.elapsed_sec >= 0


def test_generate_to_file_counts_misses(scripted, tmp_path):
    out = tmp_path / "results.sfen"
    config = GeneratorConfig(max_attempts=2)
    seen = []
    stats = generate_to_file(
        SearchSession(scripted(lambda moves, ms: ["bestmove resign"]), config),
        out, 2, config, on_slot=seen.append,
    )
    assert out.read_text(encoding="utf-8") == ""
    assert stats.written == 0 and stats.misses == 2 and stats.errors == 4
    assert seen == [None, None]


def test_generate_to_file_zero_target(scripted, tmp_path):
    out = tmp_path / "results.sfen"
    stats = generate_to_file(SearchSession(scripted(script_mate)), out, 0)
    assert out.exists() and out.read_text(encoding="utf-8") == ""
    assert stats.written == 0


def test_accepted_puzzle_board_logged_at_debug(scripted, caplog):
    caplog.set_level(logging.DEBUG, logger="generator")
    generate_tsume(SearchSession(scripted(script_mate)))
    assert any("v角" in r.getMessage() for r in caplog.records)
