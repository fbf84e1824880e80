#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

"""
自己対局シミュレータ

先手（攻め方）は最善手、後手（玉方）は MultiPV の最悪手を指し、
詰み直前の局面を先手番の詰将棋として記録する。
"""

import logging
from typing import List, Optional

from config import GeneratorConfig
from errors import EngineError, EngineTerminatedError, IllegalMoveError
from models import GameOutcome, GameResult, ResultKind
from position import WildcatPosition
from search_session import SearchSession
from sfen import convert_move_files, ensure_black_to_move, mirror_sfen, position_only_sfen

log = logging.getLogger(__name__)

__all__ = ["simulate_game", "normalize_puzzle_sfen"]


def normalize_puzzle_sfen(sfen: str, mirror: bool) -> str:
    """
    Puzzle record: mirrored when the winner was White, and always Black to
    move. A record that went through a mirror restarts at move 1.
    """
    if mirror:
        parts = mirror_sfen(sfen).split()
        sfen = f"{parts[0]} {parts[1]} {parts[2]} 1"
    # 後手番のままなら先手番に正規化（手数 1）
    return ensure_black_to_move(sfen)


def _checkmate(sfen_before_last_move: str, mirror: bool, ply: int, moves: List[str]) -> GameResult:
    if not sfen_before_last_move:
        # 初手から指し手なし: 記録すべき局面がない
        return GameResult(GameOutcome.ERROR, reason="terminal before any move", plies=ply, moves=tuple(moves))
    sfen = normalize_puzzle_sfen(sfen_before_last_move, mirror)
    return GameResult(GameOutcome.CHECKMATE, sfen=sfen, plies=ply, moves=tuple(moves))


def simulate_game(session: SearchSession, config: Optional[GeneratorConfig] = None) -> GameResult:
    config = config or session.config
    position = WildcatPosition.startpos()
    move_history: List[str] = []   # engine coordinates
    is_black_turn = True
    sfen_before_last_move = ""     # SFEN before the last move was made

    def applied() -> List[str]:
        return [m.usi for m in position.moves]

    try:
        session.new_game()
        for ply in range(config.max_moves):
            current_sfen = position_only_sfen(position.to_sfen())
            session.set_position(move_history)

            # Black plays best, White plays worst -> Black should mate White
            result = session.get_best_move() if is_black_turn else session.get_worst_move()

            if result is None:
                # 合法手なし = 負け（将棋にステイルメイトはない）
                # 先手が負けたなら盤を反転して先手を攻め方にする
                return _checkmate(sfen_before_last_move, is_black_turn, ply, applied())

            if result.kind is ResultKind.CHECKMATE:
                # 後手の勝ちなら反転
                return _checkmate(sfen_before_last_move, not is_black_turn, ply, applied())

            chosen = result.move or ""
            try:
                position.push_usi(convert_move_files(chosen))
            except IllegalMoveError as e:
                log.debug("ply %d: rejected %r: %s", ply, chosen, e)
                return GameResult(GameOutcome.ERROR, reason=str(e), plies=ply, moves=tuple(applied()))

            sfen_before_last_move = current_sfen
            move_history.append(chosen)
            is_black_turn = not is_black_turn

    except EngineTerminatedError:
        raise
    except EngineError as e:
        log.debug("engine error during game: %s", e)
        return GameResult(GameOutcome.ERROR, reason=str(e), plies=len(move_history), moves=tuple(applied()))

    return GameResult(GameOutcome.NO_RESULT, plies=len(move_history), moves=tuple(applied()))
