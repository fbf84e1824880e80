#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from models import Piece
from constants import HAND_ORDER, NUM_FILES, NUM_RANKS, PIECE_KINDS
from errors import SfenError

Square = Tuple[int, int]
BoardMap = Dict[Square, Optional[Piece]]
Hands = Dict[str, Dict[str, int]]

__all__ = [
    "position_only_sfen",
    "convert_move_files",
    "board_to_sfen",
    "hands_to_sfen",
    "snapshot_to_sfen",
    "sfen_to_snapshot",
    "mirror_sfen",
    "ensure_black_to_move",
]


def position_only_sfen(sfen: str) -> str:
    """Drop the trailing " moves ..." part of a position string."""
    idx = sfen.find(" moves")
    if idx >= 0:
        return sfen[:idx]
    return sfen


def _flip_file(ch: str) -> Optional[str]:
    if not ch.isdigit():
        return None
    return str(NUM_FILES + 1 - int(ch))


def convert_move_files(usi: str) -> str:
    """
    Engine <-> library file numbering for a move token.

    Fairy-Stockfish counts files from the right (file 1 = rightmost), the
    library from the left, so new_file = 4 - old_file. Applying it twice is
    the identity. Tokens whose files are not digits come back unchanged.
    """
    # drop: "P*2b"
    if len(usi) >= 4 and usi[1] == "*":
        f = _flip_file(usi[2])
        if f is None:
            return usi
        return f"{usi[0]}*{f}{usi[3:]}"

    # move: "3a1c" / "3a1c+"
    if len(usi) >= 4:
        ff = _flip_file(usi[0])
        tf = _flip_file(usi[2])
        if ff is None or tf is None:
            return usi
        return f"{ff}{usi[1]}{tf}{usi[3]}{usi[4:]}"

    return usi


def empty_board() -> BoardMap:
    return {(f, r): None for f in range(1, NUM_FILES + 1) for r in range(1, NUM_RANKS + 1)}


def hands_to_sfen(hands: Hands) -> str:
    parts: List[str] = []

    def add(kind: str, n: int, is_black: bool) -> None:
        if n <= 0:
            return
        c = kind if is_black else kind.lower()
        parts.append(c if n == 1 else f"{n}{c}")

    for k in HAND_ORDER:
        add(k, hands.get("B", {}).get(k, 0), True)
    for k in HAND_ORDER:
        add(k, hands.get("W", {}).get(k, 0), False)

    return "-" if not parts else "".join(parts)


def board_to_sfen(board_map: BoardMap) -> str:
    rows: List[str] = []
    for r in range(1, NUM_RANKS + 1):
        empties = 0
        row = ""
        for f in range(1, NUM_FILES + 1):
            p = board_map[(f, r)]
            if p is None:
                empties += 1
                continue
            if empties:
                row += str(empties)
                empties = 0
            if p.prom:
                row += "+"
            ch = p.kind
            row += ch if p.color == "B" else ch.lower()
        if empties:
            row += str(empties)
        rows.append(row)
    return "/".join(rows)


def snapshot_to_sfen(board_map: BoardMap, hands: Hands, side_to_move: str, move_number: int = 1) -> str:
    turn = "b" if side_to_move == "B" else "w"
    return f"{board_to_sfen(board_map)} {turn} {hands_to_sfen(hands)} {move_number}"


def _parse_board(board_part: str) -> BoardMap:
    board_map = empty_board()
    rows = board_part.split("/")
    if len(rows) != NUM_RANKS:
        raise SfenError(f"SFEN盤面の段数が不正です: {board_part!r}")
    for r_idx, row in enumerate(rows, start=1):
        f = 1
        i = 0
        while i < len(row):
            ch = row[i]
            if ch.isdigit():
                f += int(ch)
                i += 1
                continue
            prom = False
            if ch == "+":
                prom = True
                i += 1
                if i >= len(row):
                    raise SfenError(f"SFEN: dangling '+' in rank {r_idx}")
                ch = row[i]
            kind = ch.upper()
            if kind not in PIECE_KINDS:
                raise SfenError(f"SFEN駒種が不正です: {ch!r}")
            if f > NUM_FILES:
                raise SfenError(f"SFEN: rank {r_idx} is too long")
            color = "B" if ch.isupper() else "W"
            board_map[(f, r_idx)] = Piece(color=color, kind=kind, prom=prom)
            f += 1
            i += 1
        if f != NUM_FILES + 1:
            raise SfenError(f"SFEN: rank {r_idx} has {f - 1} files")
    return board_map


def _parse_hands(hands_part: str) -> Hands:
    hands: Hands = {"B": {}, "W": {}}
    if hands_part == "-":
        return hands
    i = 0
    while i < len(hands_part):
        # count may be multiple digits
        if hands_part[i].isdigit():
            j = i
            while j < len(hands_part) and hands_part[j].isdigit():
                j += 1
            if j >= len(hands_part):
                raise SfenError(f"SFEN持ち駒が不正です: {hands_part!r}")
            cnt = int(hands_part[i:j])
            pch = hands_part[j]
            i = j + 1
        else:
            cnt = 1
            pch = hands_part[i]
            i += 1
        kind = pch.upper()
        if kind not in PIECE_KINDS or kind == "K":
            raise SfenError(f"SFEN持ち駒が不正です: {pch!r}")
        color = "B" if pch.isupper() else "W"
        hands[color][kind] = hands[color].get(kind, 0) + cnt
    return hands


def sfen_to_snapshot(sfen: str) -> Tuple[BoardMap, Hands, str, int]:
    """Parse SFEN into (board_map, hands, side_to_move, move_number)."""
    parts = position_only_sfen(sfen).strip().split()
    if len(parts) < 3:
        raise SfenError(f"SFEN形式が不正です: {sfen!r}")
    board_part, turn_part, hands_part = parts[0], parts[1], parts[2]
    if turn_part not in ("b", "w"):
        raise SfenError(f"SFEN手番が不正です: {turn_part!r}")
    move_number = 1
    if len(parts) >= 4:
        if not parts[3].isdigit():
            raise SfenError(f"SFEN手数が不正です: {parts[3]!r}")
        move_number = int(parts[3])
    side_to_move = "B" if turn_part == "b" else "W"
    return _parse_board(board_part), _parse_hands(hands_part), side_to_move, move_number


def mirror_sfen(sfen: str) -> str:
    """
    Rotate the board 180 degrees and swap colors (pieces, hands, side to move).
    The move counter is kept as is.
    """
    board_map, hands, side, move_number = sfen_to_snapshot(sfen)
    flipped = empty_board()
    for (f, r), p in board_map.items():
        if p is None:
            continue
        other = "W" if p.color == "B" else "B"
        flipped[(NUM_FILES + 1 - f, NUM_RANKS + 1 - r)] = Piece(other, p.kind, p.prom)
    swapped: Hands = {"B": dict(hands["W"]), "W": dict(hands["B"])}
    return snapshot_to_sfen(flipped, swapped, "W" if side == "B" else "B", move_number)


def ensure_black_to_move(sfen: str) -> str:
    """先手番ならそのまま。後手番なら反転して先手番・手数1に正規化する。"""
    parts = sfen.split()
    if len(parts) >= 2 and parts[1] == "b":
        return sfen
    flipped = mirror_sfen(sfen).split()
    return f"{flipped[0]} {flipped[1]} {flipped[2]} 1"
