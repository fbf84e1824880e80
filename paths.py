#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
paths.py

出力ファイル（results.sfen 等）とワーカー用一時フォルダのパス解決。
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import List


def _resolve_output_path(name: str) -> Path:
    """Expand ~ and make sure the parent directory exists."""
    p = Path(name).expanduser()
    if p.parent != Path("."):
        p.parent.mkdir(parents=True, exist_ok=True)
    return p


def _make_parts_dir(output: Path) -> Path:
    # 出力先と同じディレクトリに作る（rename/merge が同一FSで済む）
    base = output.parent if str(output.parent) else Path(".")
    return Path(tempfile.mkdtemp(prefix=".tsume-parts-", dir=str(base)))


def _part_paths(parts_dir: Path, workers: int) -> List[Path]:
    return [parts_dir / f"part_{i}.sfen" for i in range(1, workers + 1)]
