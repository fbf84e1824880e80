#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
USI engine channel (Fairy-Stockfish 想定)

- one external process, line based request/response
- a daemon reader thread pushes stdout lines into a queue
- recv() turns lines into typed events (InfoEvent / BestMoveEvent)
- a sentinel after EOF tells a dead process apart from a slow one
"""

from __future__ import annotations

import logging
import queue
import subprocess
import threading
import time
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Union

from config import GeneratorConfig
from constants import RESPONSE_TIMEOUT_SEC
from errors import EngineError, EngineSetupError, EngineTerminatedError, EngineTimeoutError
from helpers import _try_int

log = logging.getLogger(__name__)

__all__ = [
    "InfoEvent",
    "BestMoveEvent",
    "EngineEvent",
    "UsiChannel",
    "UsiEngine",
    "parse_engine_line",
    "spawn_engine",
]


# =========================
# Events
# =========================
@dataclass
class InfoEvent:
    multipv: Optional[int] = None
    score: Optional[int] = None
    score_kind: Optional[str] = None   # "cp" / "mate"
    pv: List[str] = field(default_factory=list)


@dataclass
class BestMoveEvent:
    kind: str                   # "move" / "resign" / "win"
    move: Optional[str] = None


EngineEvent = Union[InfoEvent, BestMoveEvent]

# info keys followed by exactly one value
_INFO_VALUE_KEYS = {
    "depth", "seldepth", "time", "nodes", "nps", "hashfull",
    "currmove", "currmovenumber", "cpuload", "tbhits", "sbhits",
}


def _parse_score(kind: str, tok: Optional[str]) -> Optional[int]:
    if tok is None:
        return None
    if kind == "mate" and tok in ("+", "-"):
        # sign only: "score mate +"
        return 1 if tok == "+" else -1
    if tok.startswith("+"):
        tok = tok[1:]
    return _try_int(tok)


def parse_info(tokens: Sequence[str]) -> Optional[InfoEvent]:
    ev = InfoEvent()
    i = 1
    n = len(tokens)
    while i < n:
        key = tokens[i]
        if key == "string":
            # info string ... は候補手と無関係
            return None
        if key == "pv":
            ev.pv = list(tokens[i + 1:])
            break
        if key == "multipv":
            ev.multipv = _try_int(tokens[i + 1] if i + 1 < n else None)
            i += 2
            continue
        if key == "score":
            kind = tokens[i + 1] if i + 1 < n else ""
            val = tokens[i + 2] if i + 2 < n else None
            i += 3
            if kind in ("cp", "mate"):
                ev.score_kind = kind
                ev.score = _parse_score(kind, val)
            # 境界値（lowerbound/upperbound）は値として扱う
            if i < n and tokens[i] in ("lowerbound", "upperbound"):
                i += 1
            continue
        if key in _INFO_VALUE_KEYS:
            i += 2
            continue
        i += 1
    return ev


def parse_bestmove(tokens: Sequence[str]) -> BestMoveEvent:
    tok = tokens[1] if len(tokens) >= 2 else ""
    low = tok.lower()
    if low == "win":
        return BestMoveEvent("win")
    # (none) / 0000 も「指し手なし」扱い
    if low in ("resign", "(none)", "0000", ""):
        return BestMoveEvent("resign")
    return BestMoveEvent("move", tok)


def parse_engine_line(line: str) -> Optional[EngineEvent]:
    tt = line.split()
    if not tt:
        return None
    if tt[0] == "info":
        return parse_info(tt)
    if tt[0] == "bestmove":
        return parse_bestmove(tt)
    return None


# =========================
# Channel interface
# =========================
class UsiChannel(Protocol):
    """What the search session needs from an engine (real or scripted)."""

    def usinewgame(self) -> None: ...

    def position(self, sfen: str, moves: Sequence[str] = ()) -> None: ...

    def go(self, byoyomi_ms: int) -> None: ...

    def stop(self) -> None: ...

    def recv(self, timeout: float = RESPONSE_TIMEOUT_SEC) -> EngineEvent: ...

    def drain(self) -> int: ...


# =========================
# Engine Wrapper
# =========================
class UsiEngine:
    def __init__(self, command: Sequence[str], cwd: Optional[str] = None) -> None:
        self.command = list(command)
        try:
            self.p = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                bufsize=1,
                cwd=cwd,
            )
        except OSError as e:
            raise EngineSetupError(f"failed to spawn engine {self.command!r}: {e}") from e
        self.q: "queue.Queue[Optional[str]]" = queue.Queue()
        self.alive = True
        threading.Thread(target=self._reader, name="usi-reader", daemon=True).start()

    def _reader(self) -> None:
        assert self.p.stdout is not None
        try:
            for line in self.p.stdout:
                self.q.put(line.rstrip("\r\n"))
        except (OSError, ValueError):
            # stdout closed under us by close()
            pass
        self.alive = False
        self.q.put(None)

    # ---- raw IO ----
    def send(self, s: str) -> None:
        if not self.alive:
            # 標準出力が閉じた = プロセス終了済み
            raise EngineTerminatedError(f"engine exited (code={self.p.poll()}); cannot send {s!r}")
        if self.p.stdin is None:
            raise EngineError("engine stdin is not available")
        log.debug("> %s", s)
        try:
            self.p.stdin.write(s + "\n")
            self.p.stdin.flush()
        except (OSError, ValueError) as e:
            self.alive = False
            raise EngineError(f"failed to send {s!r}: {e}") from e

    def recv_line(self, timeout: float = RESPONSE_TIMEOUT_SEC) -> str:
        try:
            line = self.q.get(timeout=timeout)
        except queue.Empty:
            raise EngineTimeoutError(timeout) from None
        if line is None:
            # 後続の呼び出しも即座に検知できるよう戻しておく
            self.q.put(None)
            raise EngineTerminatedError(f"engine exited (code={self.p.poll()})")
        log.debug("< %s", line)
        return line

    def recv(self, timeout: float = RESPONSE_TIMEOUT_SEC) -> EngineEvent:
        """Next info/bestmove event; raises if none arrives within timeout."""
        deadline = time.monotonic() + timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise EngineTimeoutError(timeout)
            ev = parse_engine_line(self.recv_line(remaining))
            if ev is not None:
                return ev

    def wait_for(self, token: str, timeout: float = RESPONSE_TIMEOUT_SEC) -> List[str]:
        """Read until a line starting with token; returns the lines seen before it."""
        deadline = time.monotonic() + timeout
        seen: List[str] = []
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise EngineTimeoutError(timeout, token)
            try:
                line = self.recv_line(remaining)
            except EngineTimeoutError:
                raise EngineTimeoutError(timeout, token) from None
            if line.split()[:1] == [token]:
                return seen
            seen.append(line)

    def drain(self) -> int:
        n = 0
        while True:
            try:
                line = self.q.get_nowait()
            except queue.Empty:
                break
            if line is None:
                self.q.put(None)
                break
            n += 1
        if n:
            log.debug("drained %d stale line(s)", n)
        return n

    # ---- USI commands ----
    def setoption(self, name: str, value: str) -> None:
        self.send(f"setoption name {name} value {value}")

    def usi(self, timeout: float = RESPONSE_TIMEOUT_SEC) -> List[str]:
        self.send("usi")
        return self.wait_for("usiok", timeout)

    def isready(self, timeout: float = RESPONSE_TIMEOUT_SEC) -> None:
        self.send("isready")
        self.wait_for("readyok", timeout)

    def usinewgame(self) -> None:
        self.send("usinewgame")

    def position(self, sfen: str, moves: Sequence[str] = ()) -> None:
        cmd = f"position sfen {sfen}"
        if moves:
            cmd += " moves " + " ".join(moves)
        self.send(cmd)

    def go(self, byoyomi_ms: int) -> None:
        self.send(f"go btime 0 wtime 0 byoyomi {int(byoyomi_ms)}")

    def stop(self) -> None:
        self.send("stop")

    def close(self) -> None:
        if self.p.poll() is None:
            try:
                self.send("quit")
            except EngineError:
                pass
            try:
                self.p.wait(timeout=2.0)
            except subprocess.TimeoutExpired:
                self.p.terminate()
                try:
                    self.p.wait(timeout=2.0)
                except subprocess.TimeoutExpired:
                    self.p.kill()
                    self.p.wait()
        for stream in (self.p.stdin, self.p.stdout):
            if stream is not None:
                try:
                    stream.close()
                except OSError:
                    pass
        self.alive = False

    def __enter__(self) -> "UsiEngine":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def spawn_engine(config: GeneratorConfig, cwd: Optional[str] = None) -> UsiEngine:
    """
    Spawn and configure the engine:
      Protocol=usi (before handshake) -> usi/usiok -> UCI_Variant -> MultiPV
      -> other options -> isready/readyok -> usinewgame
    Any failure is an EngineSetupError.
    """
    eng = UsiEngine(config.engine_command(), cwd=cwd)
    timeout = config.response_timeout_sec
    try:
        # fairy-stockfish needs the protocol before the handshake
        eng.setoption("Protocol", "usi")
        for line in eng.usi(timeout):
            if line.startswith("id name"):
                log.info("[engine] %s", line[len("id name"):].strip())
        eng.setoption("UCI_Variant", config.variant)
        eng.setoption("MultiPV", str(config.multipv))
        for name, value in config.engine_options:
            eng.setoption(name, value)
        eng.isready(timeout)
        eng.usinewgame()
    except EngineError as e:
        eng.close()
        if isinstance(e, EngineSetupError):
            raise
        raise EngineSetupError(f"engine setup failed: {e}") from e
    return eng
