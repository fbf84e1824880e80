#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse
import logging
import shutil
import sys
from concurrent.futures import Future, ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, List, Optional

from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn, TimeElapsedColumn

from config import GeneratorConfig
from constants import DEFAULT_OUTPUT, DEFAULT_TARGET
from errors import EngineError
from help_texts import HELP_BATCH, HELP_ENV
from helpers import _try_int, format_total_time, setup_logging, unique_sorted_lines
from models import RunStats
from paths import _make_parts_dir, _part_paths, _resolve_output_path

log = logging.getLogger("batch_runner")


def per_worker_count(total: int, workers: int) -> int:
    return (total + workers - 1) // workers


def _run_worker(part: str, count: int, config: GeneratorConfig) -> RunStats:
    # 別プロセスで実行される（エンジンはワーカーごとに 1 つ）
    from tsume_generator import run_generation

    setup_logging(config.log_level)
    return run_generation(Path(part), count, config, show_progress=False)


def merge_parts(parts: List[Path], output: Path) -> int:
    """cat part_*.sfen | sort -u > output"""
    lines: List[str] = []
    for p in parts:
        if p.exists():
            lines.extend(p.read_text(encoding="utf-8").splitlines())
    unique = unique_sorted_lines(lines)
    with open(output, "w", encoding="utf-8") as f:
        for ln in unique:
            f.write(ln + "\n")
    return len(unique)


def run_batch(output: Path, total: int, workers: int, config: GeneratorConfig, show_progress: bool = True) -> int:
    """
    Run `workers` generator processes with ceil(total / workers) puzzles each
    and merge their parts into `output`. Returns the unique puzzle count.
    A failing worker is logged; its partial part file is still merged.
    """
    workers = max(1, workers)
    per_worker = per_worker_count(total, workers)
    log.info("Generating %d tsume with %d workers (%d each)...", total, workers, per_worker)

    parts_dir = _make_parts_dir(output)
    parts = _part_paths(parts_dir, workers)
    failed = 0
    try:
        with ProcessPoolExecutor(max_workers=workers) as ex:
            futures: Dict[Future, Path] = {
                ex.submit(_run_worker, str(p), per_worker, config): p for p in parts
            }
            progress: Optional[Progress] = None
            if show_progress:
                progress = Progress(
                    TextColumn("[progress.description]{task.description}"),
                    BarColumn(),
                    TaskProgressColumn(),
                    TimeElapsedColumn(),
                )
                progress.start()
            overall = progress.add_task("workers", total=workers) if progress else None
            try:
                for fut in as_completed(futures):
                    part = futures[fut]
                    try:
                        st = fut.result()
                        log.info("[batch] %s: %d/%d in %s", part.name, st.written, st.requested,
                                 format_total_time(st.elapsed_sec))
                    except EngineError as e:
                        failed += 1
                        log.error("[batch] %s: %s", part.name, e)
                    if progress is not None and overall is not None:
                        progress.update(overall, advance=1)
            finally:
                if progress is not None:
                    progress.stop()

        n = merge_parts(parts, output)
    finally:
        shutil.rmtree(parts_dir, ignore_errors=True)

    if failed:
        log.warning("[batch] %d of %d workers failed", failed, workers)
    log.info("Done: %d unique tsume -> %s", n, output)
    return n


def main(argv: Optional[List[str]] = None) -> int:
    config = GeneratorConfig.from_env()
    ap = argparse.ArgumentParser(
        prog="tsume-batch",
        description=HELP_BATCH,
        epilog=HELP_ENV,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    ap.add_argument("output", nargs="?", default=DEFAULT_OUTPUT)
    ap.add_argument("total", nargs="?", default=str(DEFAULT_TARGET))
    ap.add_argument("workers", nargs="?", default=str(config.workers))
    args = ap.parse_args(argv)
    setup_logging(config.log_level)

    total = _try_int(args.total)
    workers = _try_int(args.workers)
    output = _resolve_output_path(args.output)
    n = run_batch(
        output,
        total if total is not None and total >= 0 else DEFAULT_TARGET,
        workers if workers is not None and workers > 0 else config.workers,
        config,
        show_progress=sys.stderr.isatty(),
    )
    return 0 if n > 0 or total == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
