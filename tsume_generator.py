#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations
"""
tsume_generator.py

Tsume (checkmate puzzle) generator for Wild Cat Shogi.

- A strong Black plays the engine's best line, a weak White plays the worst of
  the top-K MultiPV lines.
- The SFEN of the position before checkmate is written, one per line.

Usage:
    tsume-generator [output.sfen] [count]
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from config import GeneratorConfig
from constants import DEFAULT_OUTPUT, DEFAULT_TARGET
from errors import EngineError, EngineSetupError
from generator import generate_to_file
from help_texts import HELP_ENV, HELP_MAIN
from helpers import _try_int, format_total_time, setup_logging
from models import RunStats
from paths import _resolve_output_path
from search_session import SearchSession
from usi_engine import spawn_engine

log = logging.getLogger("tsume_generator")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="tsume-generator",
        description=HELP_MAIN,
        epilog=HELP_ENV,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    ap.add_argument("output", nargs="?", default=DEFAULT_OUTPUT, help=f"output file (default: {DEFAULT_OUTPUT})")
    ap.add_argument("count", nargs="?", default=str(DEFAULT_TARGET), help=f"number of puzzles (default: {DEFAULT_TARGET})")
    return ap


def parse_count(raw: Optional[str], default: int = DEFAULT_TARGET) -> int:
    # 数値でなければ既定値（元の挙動どおり）
    n = _try_int(raw)
    return n if n is not None and n >= 0 else default


def run_generation(
    output: Path,
    target: int,
    config: GeneratorConfig,
    show_progress: bool = True,
    console: Optional[Console] = None,
) -> RunStats:
    """Spawn one engine, fill `output` with up to `target` puzzles."""
    with spawn_engine(config) as engine:
        session = SearchSession(engine, config)
        if not show_progress:
            return generate_to_file(session, output, target, config)

        columns = (
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TextColumn("{task.fields[found]} found"),
            TimeElapsedColumn(),
            TimeRemainingColumn(),
        )
        with Progress(*columns, console=console or Console(stderr=True), transient=False) as progress:
            task_id = progress.add_task("tsume", total=target, found=0)
            found = [0]

            def on_slot(sfen: Optional[str]) -> None:
                if sfen is not None:
                    found[0] += 1
                progress.update(task_id, advance=1, found=found[0])

            return generate_to_file(session, output, target, config, on_slot=on_slot)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = GeneratorConfig.from_env()
    setup_logging(config.log_level)

    output = _resolve_output_path(args.output)
    target = parse_count(args.count)

    try:
        stats = run_generation(output, target, config, show_progress=sys.stderr.isatty())
    except EngineSetupError as e:
        log.error("Failed to spawn engine: %s", e)
        return 1
    except EngineError as e:
        log.error("Engine failure: %s", e)
        return 1

    log.info(
        "misses=%d (no result=%d, errors=%d) in %s",
        stats.misses, stats.no_result, stats.errors, format_total_time(stats.elapsed_sec),
    )
    log.info("Done: %d -> %s", stats.written, output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
