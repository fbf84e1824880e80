# tests/test_search_session.py
import pytest

from config import GeneratorConfig
from errors import EngineTimeoutError
from models import PvInfo, ResultKind, SearchResult
from search_session import SearchSession, collect_pv_update, select_best, select_worst
from usi_engine import InfoEvent


def _two_candidates(moves, byoyomi):
    return [
        "info depth 3 seldepth 3 multipv 1 score cp 50 nodes 120 pv 1e2d 3a2b",
        "info depth 3 seldepth 3 multipv 2 score cp -300 nodes 120 pv 3a2b",
        "bestmove 1e2d",
    ]


def test_collect_pv_update_latest_per_rank_wins():
    pv = {}
    collect_pv_update(pv, InfoEvent(multipv=1, score=10, score_kind="cp", pv=["1e2d"]))
    collect_pv_update(pv, InfoEvent(multipv=2, score=-5, score_kind="cp", pv=["3a2b"]))
    collect_pv_update(pv, InfoEvent(multipv=1, score=30, score_kind="cp", pv=["2e1d", "1a1b"]))
    assert pv[1].score == 30 and pv[1].moves == ["2e1d", "1a1b"]
    assert pv[2].score == -5


def test_collect_pv_update_defaults_and_mate():
    pv = {}
    # multipv 省略は 1
    collect_pv_update(pv, InfoEvent(score=7, score_kind="cp", pv=["1e2d"]))
    assert pv[1].score == 7
    # score なしは前回値
    collect_pv_update(pv, InfoEvent(multipv=1, pv=["1e1d"]))
    assert pv[1].score == 7 and pv[1].moves == ["1e1d"]
    collect_pv_update(pv, InfoEvent(multipv=2, score=-3, score_kind="mate", pv=["3a3b"]))
    collect_pv_update(pv, InfoEvent(multipv=3, score=1, score_kind="mate", pv=["2a2b"]))
    assert pv[2].score == -10000
    assert pv[3].score == 10000
    # pv なしの行は無視
    collect_pv_update(pv, InfoEvent(multipv=4, score=99, score_kind="cp"))
    assert 4 not in pv


def test_select_best_prefers_rank_one():
    pvs = [PvInfo(1, -50, ["1e2d"]), PvInfo(2, 400, ["3e2d"])]
    assert select_best(pvs, SearchResult.make_move("3e2d")) == SearchResult.make_move("1e2d")


def test_select_best_fallbacks():
    assert select_best([], SearchResult.make_move("2e1d")).move == "2e1d"
    assert select_best([], SearchResult.checkmate()).kind is ResultKind.CHECKMATE
    assert select_best([], SearchResult.resign()) is None
    # rank 1 がない
    assert select_best([PvInfo(2, 0, ["3a2b"])], SearchResult.make_move("1a1b")).move == "1a1b"


def test_select_worst_minimum_score_first_wins_ties():
    pvs = [PvInfo(1, 50, ["1e2d"]), PvInfo(2, -300, ["3a2b"]), PvInfo(3, -300, ["2a2b"])]
    assert select_worst(pvs, SearchResult.make_move("1e2d")).move == "3a2b"


def test_select_worst_fallbacks():
    assert select_worst([], SearchResult.make_move("2e1d")).move == "2e1d"
    assert select_worst([], SearchResult.checkmate()).kind is ResultKind.CHECKMATE
    assert select_worst([], SearchResult.resign()) is None


def test_search_returns_candidates_in_rank_order(scripted):
    ch = scripted(lambda moves, ms: [
        "info depth 1 multipv 2 score cp -1 pv 3a2b",
        "info depth 1 multipv 1 score cp 5 pv 1e2d",
        "bestmove 1e2d",
    ])
    session = SearchSession(ch)
    session.set_position([])
    pvs, result = session.search()
    assert [p.multipv for p in pvs] == [1, 2]
    assert result == SearchResult.make_move("1e2d")
    assert ch.gos == [10]


def test_best_and_worst_from_same_reply(scripted):
    ch = scripted(_two_candidates)
    session = SearchSession(ch)
    session.set_position(["1e2d"])
    assert session.get_best_move().move == "1e2d"
    assert session.get_worst_move().move == "3a2b"
    assert ch.positions == [["1e2d"]]


def test_bestmove_win_is_checkmate(scripted):
    ch = scripted(lambda moves, ms: ["bestmove win"])
    session = SearchSession(ch)
    assert session.get_best_move().kind is ResultKind.CHECKMATE
    assert ch.gos == [10]


def test_resign_without_pv_escalates_once(scripted):
    ch = scripted(lambda moves, ms: ["bestmove resign"])
    session = SearchSession(ch, GeneratorConfig(search_time_ms=20, escalation_factor=3))
    assert session.get_best_move() is None
    assert ch.gos == [20, 60]


def test_escalated_search_can_find_a_move(scripted):
    def responder(moves, ms):
        if ms < 50:
            return ["bestmove resign"]
        return ["info depth 8 multipv 1 score cp -20 pv 2e1d", "bestmove 2e1d"]

    ch = scripted(responder)
    session = SearchSession(ch)
    assert session.get_worst_move().move == "2e1d"
    assert ch.gos == [10, 50]


def test_resign_with_pv_is_not_escalated(scripted):
    ch = scripted(lambda moves, ms: ["info multipv 1 score mate -1 pv 2e1d", "bestmove resign"])
    session = SearchSession(ch)
    assert session.get_best_move().move == "2e1d"
    assert ch.gos == [10]


def test_timeout_sends_stop_and_consumes_its_bestmove(scripted):
    calls = []

    def responder(moves, ms):
        calls.append(ms)
        if len(calls) == 1:
            return []  # 無応答
        return ["info multipv 1 score cp 3 pv 3e2d", "bestmove 3e2d"]

    ch = scripted(responder)
    ch.stop_reply = ["bestmove 1e2d"]
    session = SearchSession(ch)
    with pytest.raises(EngineTimeoutError):
        session.get_best_move()
    assert ch.stops == 1
    assert len(ch.q) == 0
    # 次の探索は止めた探索の bestmove (1e2d) を拾わない
    assert session.get_best_move().move == "3e2d"


def test_timeout_without_reply_to_stop_still_raises(scripted):
    ch = scripted(lambda moves, ms: [])
    session = SearchSession(ch)
    with pytest.raises(EngineTimeoutError):
        session.get_worst_move()
    assert ch.stops == 1
