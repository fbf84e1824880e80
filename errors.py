#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations


class TsumeGeneratorError(Exception):
    pass


class EngineError(TsumeGeneratorError):
    """Engine channel failure (write to a closed pipe, bad state)."""


class EngineSetupError(EngineError):
    """Spawn / handshake / option failure. Fatal for the whole run."""


class EngineTimeoutError(EngineError):
    def __init__(self, timeout: float, waiting_for: str = "response") -> None:
        super().__init__(f"no {waiting_for} from engine within {timeout:g}s")
        self.timeout = timeout
        self.waiting_for = waiting_for

    def __reduce__(self):
        # batch workers send exceptions back through pickle
        return (type(self), (self.timeout, self.waiting_for))


class EngineTerminatedError(EngineError):
    """The engine process exited; its queue will never deliver again."""


class SfenError(TsumeGeneratorError, ValueError):
    pass


class IllegalMoveError(TsumeGeneratorError, ValueError):
    def __init__(self, move: str, reason: str) -> None:
        super().__init__(f"{move}: {reason}")
        self.move = move
        self.reason = reason

    def __reduce__(self):
        return (type(self), (self.move, self.reason))
