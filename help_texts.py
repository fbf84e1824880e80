#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

# ----------------- Help -----------------

HELP_MAIN = """\
Wild Cat Shogi 詰将棋ジェネレータ

  Fairy-Stockfish 同士の自己対局で、先手（最善手）が後手（MultiPV の最悪手）を
  詰ませた直前の局面を、先手番の SFEN として 1 行ずつ出力します。
"""

HELP_ENV = """\
environment:
  TSUME_ENGINE            engine binary (default: fairy-stockfish)
  TSUME_VARIANTS_INI      variants.ini passed as "load <file>" (empty: none)
  TSUME_VARIANT           UCI_Variant (default: wildcatshogi)
  TSUME_MULTIPV           candidates per search (default: 5)
  TSUME_SEARCH_TIME_MS    byoyomi per search (default: 10)
  TSUME_MAX_MOVES         ply ceiling per game (default: 300)
  TSUME_MAX_ATTEMPTS      games per puzzle slot (default: 10)
  TSUME_RESPONSE_TIMEOUT  seconds to wait for the engine (default: 30)
  TSUME_WORKERS           batch workers (default: 16)
  TSUME_LOG_LEVEL         DEBUG / INFO / WARNING (default: INFO)
"""

HELP_BATCH = """\
並列版: ワーカーごとにエンジンを 1 つ起動し、part ファイルを
ソート・重複除去して 1 つの出力にまとめます（generate.sh 相当）。
"""
