#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from config import GeneratorConfig
from models import GameOutcome, RunStats
from position import WildcatPosition
from search_session import SearchSession
from simulator import simulate_game

log = logging.getLogger(__name__)

__all__ = ["generate_tsume", "generate_to_file"]


def generate_tsume(
    session: SearchSession,
    config: Optional[GeneratorConfig] = None,
    stats: Optional[RunStats] = None,
) -> Optional[str]:
    """
    Up to config.max_attempts games; the first checkmate wins.
    No-result and error games are dropped and retried. None means a miss.
    """
    config = config or session.config
    for attempt in range(1, config.max_attempts + 1):
        result = simulate_game(session, config)
        if result.outcome is GameOutcome.CHECKMATE:
            log.debug("attempt %d: checkmate after %d plies", attempt, result.plies)
            if log.isEnabledFor(logging.DEBUG) and result.sfen:
                log.debug("\n%s", WildcatPosition(result.sfen).board_to_piyo())
            return result.sfen
        if stats is not None:
            if result.outcome is GameOutcome.NO_RESULT:
                stats.no_result += 1
            else:
                stats.errors += 1
        log.debug("attempt %d: %s %s", attempt, result.outcome.value, result.reason)
    return None


def generate_to_file(
    session: SearchSession,
    output: Path,
    target: int,
    config: Optional[GeneratorConfig] = None,
    on_slot: Optional[Callable[[Optional[str]], None]] = None,
) -> RunStats:
    """One line per accepted puzzle, flushed as it is found."""
    config = config or session.config
    stats = RunStats(requested=target)
    t0 = time.perf_counter()
    with open(output, "w", encoding="utf-8") as f:
        for _slot in range(target):
            sfen = generate_tsume(session, config, stats)
            if sfen is None:
                stats.misses += 1
            else:
                f.write(sfen + "\n")
                f.flush()
                stats.written += 1
                log.info("tsume %d: %s", stats.written, sfen)
            if on_slot is not None:
                on_slot(sfen)
    stats.elapsed_sec = time.perf_counter() - t0
    return stats
