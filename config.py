#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
config.py

Generator settings. Defaults come from constants.py; every field can be
overridden with a TSUME_* environment variable (see GeneratorConfig.from_env).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple

from constants import (
    DEFAULT_ENGINE,
    DEFAULT_VARIANTS_INI,
    DEFAULT_VARIANT,
    DEFAULT_WORKERS,
    ENGINE_OPTIONS,
    ESCALATION_FACTOR,
    MAX_ATTEMPTS,
    MAX_MOVES,
    MULTIPV_K,
    RESPONSE_TIMEOUT_SEC,
    SEARCH_TIME_MS,
)
from helpers import _try_float, _try_int


@dataclass
class GeneratorConfig:
    engine_path: str = DEFAULT_ENGINE
    variants_ini: Optional[str] = DEFAULT_VARIANTS_INI
    variant: str = DEFAULT_VARIANT
    multipv: int = MULTIPV_K
    search_time_ms: int = SEARCH_TIME_MS
    max_moves: int = MAX_MOVES
    max_attempts: int = MAX_ATTEMPTS
    response_timeout_sec: float = RESPONSE_TIMEOUT_SEC
    escalation_factor: int = ESCALATION_FACTOR
    workers: int = DEFAULT_WORKERS
    log_level: str = "INFO"
    engine_options: List[Tuple[str, str]] = field(default_factory=lambda: list(ENGINE_OPTIONS))

    def engine_command(self) -> List[str]:
        cmd = [self.engine_path]
        if self.variants_ini:
            cmd += ["load", self.variants_ini]
        return cmd

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "GeneratorConfig":
        env = os.environ if env is None else env
        base = cls()

        def _int(name: str, default: int) -> int:
            v = _try_int(env.get(name, ""))
            return v if v is not None and v > 0 else default

        variants = env.get("TSUME_VARIANTS_INI", base.variants_ini)
        return cls(
            engine_path=env.get("TSUME_ENGINE", base.engine_path) or base.engine_path,
            variants_ini=variants or None,
            variant=env.get("TSUME_VARIANT", base.variant) or base.variant,
            multipv=_int("TSUME_MULTIPV", base.multipv),
            search_time_ms=_int("TSUME_SEARCH_TIME_MS", base.search_time_ms),
            max_moves=_int("TSUME_MAX_MOVES", base.max_moves),
            max_attempts=_int("TSUME_MAX_ATTEMPTS", base.max_attempts),
            response_timeout_sec=_try_float(env.get("TSUME_RESPONSE_TIMEOUT", "")) or base.response_timeout_sec,
            escalation_factor=_int("TSUME_ESCALATION", base.escalation_factor),
            workers=_int("TSUME_WORKERS", base.workers),
            log_level=(env.get("TSUME_LOG_LEVEL") or base.log_level).upper(),
        )
