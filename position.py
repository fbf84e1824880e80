#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import Dict, List, Optional, Tuple, Literal
import re

from models import Piece, Move
from constants import (
    KIND_TO_PYO,
    NUM_FILES,
    NUM_RANKS,
    PIECE_KINDS,
    PROMOTABLE,
    RANK_LETTERS,
    STARTING_SFEN,
)
from errors import IllegalMoveError
from sfen import sfen_to_snapshot, snapshot_to_sfen


__all__ = ["WildcatPosition", "parse_usi_move"]


Square = Tuple[int, int]
Color = Literal["B", "W"]

_MOVE_RE = re.compile(r"([1-9])([a-i])([1-9])([a-i])(\+?)")
_DROP_RE = re.compile(r"([A-Z])\*([1-9])([a-i])")


def _square(file_ch: str, rank_ch: str, usi: str) -> Square:
    f = int(file_ch)
    r = RANK_LETTERS.find(rank_ch) + 1
    if not (1 <= f <= NUM_FILES and 1 <= r <= NUM_RANKS):
        raise IllegalMoveError(usi, "square off the board")
    return (f, r)


def parse_usi_move(usi: str) -> Move:
    """Parse a move token in library coordinates ("3e2d", "1a1b+", "P*2c")."""
    m = _DROP_RE.fullmatch(usi)
    if m:
        kind = m.group(1)
        if kind not in PIECE_KINDS or kind == "K":
            raise IllegalMoveError(usi, f"cannot drop {kind}")
        return Move(True, kind, None, _square(m.group(2), m.group(3), usi), False, usi)
    m = _MOVE_RE.fullmatch(usi)
    if m:
        frm = _square(m.group(1), m.group(2), usi)
        to = _square(m.group(3), m.group(4), usi)
        return Move(False, None, frm, to, m.group(5) == "+", usi)
    raise IllegalMoveError(usi, "not a move token")


class WildcatPosition:
    """
    Authoritative board for the self-play loop.

    Only the minimal legality needed to keep the board consistent is enforced
    (side-to-move ownership, no own-piece capture, drops onto empty squares,
    promotion of promotable pieces). Piece geometry is left to the engine.
    """

    def __init__(self, sfen: str = STARTING_SFEN) -> None:
        board, hands, side, move_number = sfen_to_snapshot(sfen)
        self.board: Dict[Square, Optional[Piece]] = board
        self.hands: Dict[Color, Dict[str, int]] = hands  # type: ignore[assignment]
        self.side_to_move: Color = side  # type: ignore[assignment]
        self.move_number: int = move_number
        self.moves: List[Move] = []

    @classmethod
    def startpos(cls) -> "WildcatPosition":
        return cls(STARTING_SFEN)

    def to_sfen(self) -> str:
        return snapshot_to_sfen(self.board, self.hands, self.side_to_move, self.move_number)

    def _remove_from_hand(self, color: Color, kind: str, usi: str) -> None:
        c = self.hands[color].get(kind, 0)
        if c <= 0:
            raise IllegalMoveError(usi, "持ち駒がありません")
        if c == 1:
            del self.hands[color][kind]
        else:
            self.hands[color][kind] = c - 1

    def _add_to_hand(self, color: Color, kind: str) -> None:
        self.hands[color][kind] = self.hands[color].get(kind, 0) + 1

    def make_move(self, mv: Move) -> Move:
        """Apply mv for the side to move. The position is untouched on error."""
        usi = mv.usi or "?"
        to = mv.to_sq

        if mv.is_drop:
            if self.board[to] is not None:
                raise IllegalMoveError(usi, "打ち先に駒があります")
            self._remove_from_hand(self.side_to_move, mv.kind or "", usi)
            self.board[to] = Piece(self.side_to_move, mv.kind or "", False)
            applied = mv
        else:
            frm = mv.from_sq
            p = self.board.get(frm) if frm is not None else None
            if p is None or p.color != self.side_to_move:
                raise IllegalMoveError(usi, "移動元に手番の駒がありません")
            if frm == to:
                raise IllegalMoveError(usi, "null move")
            if mv.promote and (p.kind not in PROMOTABLE or p.prom):
                raise IllegalMoveError(usi, "成れません")
            dest = self.board[to]
            if dest is not None:
                if dest.color == self.side_to_move:
                    raise IllegalMoveError(usi, "移動先に自分の駒があります")
                # 取った駒は成りを戻して持ち駒へ
                self._add_to_hand(self.side_to_move, dest.kind)

            self.board[frm] = None
            self.board[to] = Piece(p.color, p.kind, p.prom or mv.promote)
            applied = Move(False, p.kind, frm, to, mv.promote, mv.usi)

        self.side_to_move = "W" if self.side_to_move == "B" else "B"
        self.move_number += 1
        self.moves.append(applied)
        return applied

    def push_usi(self, usi: str) -> Move:
        return self.make_move(parse_usi_move(usi))

    # ---- output helpers ----
    def board_to_piyo(self) -> str:
        header = "".join(f" {f} " for f in range(1, NUM_FILES + 1))
        lines: List[str] = []
        lines.append(" " + header)
        lines.append("+" + "-" * (3 * NUM_FILES) + "+")
        for r in range(1, NUM_RANKS + 1):
            row: List[str] = []
            for f in range(1, NUM_FILES + 1):
                p = self.board[(f, r)]
                if p is None:
                    row.append(" ・")
                else:
                    name = KIND_TO_PYO.get((p.kind, p.prom), p.kind)
                    row.append(("v" + name) if p.color == "W" else (" " + name))
            lines.append("|" + "".join(row) + f"|{RANK_LETTERS[r - 1]}")
        lines.append("+" + "-" * (3 * NUM_FILES) + "+")
        return "\n".join(lines)
