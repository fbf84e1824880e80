#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


@dataclass
class Piece:
    color: str  # "B" (sente) or "W" (gote)
    kind: str   # "P,B,R,K" (+ standard kinds)
    prom: bool = False


@dataclass
class Move:
    is_drop: bool
    kind: Optional[str]              # drop piece; None for board moves until applied
    from_sq: Optional[Tuple[int, int]]
    to_sq: Tuple[int, int]
    promote: bool
    usi: str = ""


@dataclass
class PvInfo:
    """One MultiPV line reported by the engine."""
    multipv: int
    score: int
    moves: List[str] = field(default_factory=list)


class ResultKind(Enum):
    MOVE = "move"
    CHECKMATE = "checkmate"
    RESIGN = "resign"


@dataclass(frozen=True)
class SearchResult:
    kind: ResultKind
    move: Optional[str] = None

    @classmethod
    def make_move(cls, move: str) -> "SearchResult":
        return cls(ResultKind.MOVE, move)

    @classmethod
    def checkmate(cls) -> "SearchResult":
        return cls(ResultKind.CHECKMATE)

    @classmethod
    def resign(cls) -> "SearchResult":
        return cls(ResultKind.RESIGN)


class GameOutcome(Enum):
    CHECKMATE = "checkmate"
    NO_RESULT = "no_result"
    ERROR = "error"


@dataclass(frozen=True)
class GameResult:
    outcome: GameOutcome
    sfen: Optional[str] = None
    reason: str = ""
    plies: int = 0
    moves: Tuple[str, ...] = ()  # applied moves, library coordinates


@dataclass
class RunStats:
    requested: int = 0
    written: int = 0
    misses: int = 0
    no_result: int = 0
    errors: int = 0
    elapsed_sec: float = 0.0
