#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

"""
探索セッション（go → info multipv 集約 → bestmove）と指し手選択

Public API:
- SearchSession
- collect_pv_update
- select_best
- select_worst
"""

import logging
import time
from typing import Dict, List, Optional, Sequence, Tuple

from config import GeneratorConfig
from constants import MATE_SCORE, STARTING_SFEN, STOP_GRACE_SEC
from errors import EngineTimeoutError
from models import PvInfo, ResultKind, SearchResult
from usi_engine import BestMoveEvent, InfoEvent, UsiChannel

log = logging.getLogger(__name__)

__all__ = [
    "SearchSession",
    "collect_pv_update",
    "select_best",
    "select_worst",
]


def _normalize_score(ev: InfoEvent, previous: int) -> int:
    if ev.score is None:
        return previous
    if ev.score_kind == "mate":
        # 詰み評価は符号だけ残して ±10000 に丸める
        return MATE_SCORE if ev.score > 0 else -MATE_SCORE
    return ev.score


def collect_pv_update(pv_infos: Dict[int, PvInfo], ev: InfoEvent) -> None:
    """Fold one info line into the per-search candidate map (latest per rank wins)."""
    if not ev.pv:
        return
    rank = ev.multipv if ev.multipv is not None else 1
    existing = pv_infos.get(rank)
    score = _normalize_score(ev, existing.score if existing else 0)
    if existing is None:
        pv_infos[rank] = PvInfo(multipv=rank, score=score, moves=list(ev.pv))
    else:
        existing.score = score
        existing.moves = list(ev.pv)


def _fallback(result: SearchResult) -> Optional[SearchResult]:
    if result.kind is ResultKind.RESIGN:
        return None  # no move available
    return result


def select_best(pv_infos: Sequence[PvInfo], result: SearchResult) -> Optional[SearchResult]:
    # bestmove より multipv 1 の PV を優先
    for pv in pv_infos:
        if pv.multipv == 1 and pv.moves:
            return SearchResult.make_move(pv.moves[0])
    return _fallback(result)


def select_worst(pv_infos: Sequence[PvInfo], result: SearchResult) -> Optional[SearchResult]:
    worst: Optional[PvInfo] = None
    for pv in pv_infos:
        if not pv.moves:
            continue
        if worst is None or pv.score < worst.score:
            worst = pv
    if worst is not None:
        return SearchResult.make_move(worst.moves[0])
    return _fallback(result)


class SearchSession:
    """
    One logical command/response cycle at a time over a UsiChannel.

    set_position() then get_best_move() / get_worst_move(); both run search(),
    which retries once with a longer search time when the engine resigns without
    having reported a single line.
    """

    def __init__(self, engine: UsiChannel, config: Optional[GeneratorConfig] = None) -> None:
        self.engine = engine
        self.config = config or GeneratorConfig()

    def new_game(self) -> None:
        self.engine.usinewgame()

    def set_position(self, move_history: Sequence[str]) -> None:
        self.engine.position(STARTING_SFEN, list(move_history))

    def search_with_time(self, time_ms: int) -> Tuple[List[PvInfo], SearchResult]:
        # 前回の探索の残り（遅れて来た bestmove など）を捨てる
        self.engine.drain()
        self.engine.go(time_ms)

        pv_infos: Dict[int, PvInfo] = {}
        while True:
            try:
                ev = self.engine.recv(self.config.response_timeout_sec)
            except EngineTimeoutError:
                self._abort_search()
                raise
            if isinstance(ev, InfoEvent):
                collect_pv_update(pv_infos, ev)
                continue
            if isinstance(ev, BestMoveEvent):
                if ev.kind == "win":
                    result = SearchResult.checkmate()
                elif ev.kind == "resign":
                    result = SearchResult.resign()
                else:
                    result = SearchResult.make_move(ev.move or "")
                ordered = [pv_infos[k] for k in sorted(pv_infos)]
                return ordered, result

    def search(self) -> Tuple[List[PvInfo], SearchResult]:
        base = self.config.search_time_ms
        pv_infos, result = self.search_with_time(base)
        if result.kind is ResultKind.RESIGN and not pv_infos:
            longer = base * self.config.escalation_factor
            log.debug("resign without PV at %dms; retrying with %dms", base, longer)
            return self.search_with_time(longer)
        return pv_infos, result

    def get_best_move(self) -> Optional[SearchResult]:
        pv_infos, result = self.search()
        return select_best(pv_infos, result)

    def get_worst_move(self) -> Optional[SearchResult]:
        pv_infos, result = self.search()
        return select_worst(pv_infos, result)

    def _abort_search(self) -> None:
        """
        Stop a search that missed its deadline and swallow its bestmove, so it
        cannot answer the next go. Waits at most STOP_GRACE_SEC; a bestmove
        later than that is discarded only if it arrives before the next drain().
        """
        self.engine.stop()
        deadline = time.monotonic() + STOP_GRACE_SEC
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                ev = self.engine.recv(remaining)
            except EngineTimeoutError:
                break
            if isinstance(ev, BestMoveEvent):
                log.debug("stale search stopped")
                return
        log.debug("no bestmove within %.1fs after stop", STOP_GRACE_SEC)
