"""Shared pytest fixtures: scripted USI channel and the fake engine script."""

from __future__ import annotations

import os
import stat
import sys
from collections import deque
from pathlib import Path
from typing import Callable, Deque, Iterator, List, Sequence

import pytest

from errors import EngineTimeoutError
from usi_engine import EngineEvent, parse_engine_line

FAKE_ENGINE = Path(__file__).resolve().parent / "fake_engine.py"

# go 1回ぶんの応答を返す: (engine-coordinate move history, byoyomi) -> lines
Responder = Callable[[List[str], int], Sequence[str]]


class ScriptedChannel:
    """In-process stand-in for UsiEngine driven by a responder function."""

    def __init__(self, responder: Responder) -> None:
        self.responder = responder
        self.moves: List[str] = []
        self.positions: List[List[str]] = []
        self.gos: List[int] = []
        self.newgames = 0
        self.stops = 0
        # stop に対する応答（既定: 応答なし）
        self.stop_reply: List[str] = []
        self.q: Deque[EngineEvent] = deque()

    def usinewgame(self) -> None:
        self.newgames += 1

    def position(self, sfen: str, moves: Sequence[str] = ()) -> None:
        self.moves = list(moves)
        self.positions.append(list(moves))

    def go(self, byoyomi_ms: int) -> None:
        self.gos.append(byoyomi_ms)
        for line in self.responder(list(self.moves), byoyomi_ms):
            ev = parse_engine_line(line)
            if ev is not None:
                self.q.append(ev)

    def stop(self) -> None:
        self.stops += 1
        for line in self.stop_reply:
            ev = parse_engine_line(line)
            if ev is not None:
                self.q.append(ev)

    def recv(self, timeout: float = 30.0) -> EngineEvent:
        if not self.q:
            # 応答なし = エンジン停止とみなす
            raise EngineTimeoutError(timeout)
        return self.q.popleft()

    def drain(self) -> int:
        n = len(self.q)
        self.q.clear()
        return n


@pytest.fixture
def scripted() -> Callable[[Responder], ScriptedChannel]:
    return ScriptedChannel


@pytest.fixture
def fake_engine_cmd() -> List[str]:
    return [sys.executable, str(FAKE_ENGINE)]


@pytest.fixture
def fake_engine_exe(tmp_path: Path) -> Iterator[str]:
    """A single executable path wrapping the fake engine (for TSUME_ENGINE)."""
    exe = tmp_path / "fake-fish"
    exe.write_text(f'#!/bin/sh\nexec "{sys.executable}" "{FAKE_ENGINE}" "$@"\n', encoding="utf-8")
    exe.chmod(exe.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    yield str(exe)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for k in list(os.environ):
        if k.startswith("TSUME_"):
            monkeypatch.delenv(k, raising=False)
