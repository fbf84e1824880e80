#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from rich.console import Console
from rich.logging import RichHandler


def format_total_time(total_sec: float) -> str:
    """秒数を HH:MM:SS に整形（実行サマリ用）"""
    total_sec = int(total_sec)
    if total_sec < 0:
        total_sec = 0
    h = total_sec // 3600
    m = (total_sec % 3600) // 60
    s = total_sec % 60
    return f"{h:02d}:{m:02d}:{s:02d}"


def _try_int(x: Optional[str]) -> Optional[int]:
    try:
        return int(x)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def _try_float(x: Optional[str]) -> Optional[float]:
    try:
        v = float(x)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return v if v > 0 else None


def unique_sorted_lines(lines: Iterable[str]) -> List[str]:
    """`sort -u` for puzzle files: strip, drop blanks, de-duplicate."""
    return sorted({ln.strip() for ln in lines if ln.strip()})


def setup_logging(level: str = "INFO", console: Optional[Console] = None) -> None:
    """Route the root logger through rich on stderr."""
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
