#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# ----------------- board -----------------

# Wild Cat Shogi: 3筋 x 5段
NUM_FILES = 3
NUM_RANKS = 5
RANK_LETTERS = "abcde"

# library convention: file 1 = leftmost (first char of a SFEN rank)
STARTING_SFEN = "bkr/p1p/3/P1P/RKB b - 1"

PIECE_KINDS = set(["P", "L", "N", "S", "G", "B", "R", "K"])
PROMOTABLE = set(["P", "L", "N", "S", "B", "R"])
HAND_ORDER = ["R", "B", "G", "S", "N", "L", "P"]

# board display tokens (debug output)
KIND_TO_PYO = {
    ("P",False):"歩", ("L",False):"香", ("N",False):"桂", ("S",False):"銀", ("G",False):"金",
    ("B",False):"角", ("R",False):"飛", ("K",False):"玉",
    ("P",True):"と", ("L",True):"成香", ("N",True):"成桂", ("S",True):"成銀",
    ("B",True):"馬", ("R",True):"竜",
}

# ----------------- engine / generator defaults -----------------

DEFAULT_ENGINE = "fairy-stockfish"
DEFAULT_VARIANTS_INI = "variants.ini"
DEFAULT_VARIANT = "wildcatshogi"

MAX_MOVES = 300
MULTIPV_K = 5
SEARCH_TIME_MS = 10
MAX_ATTEMPTS = 10
RESPONSE_TIMEOUT_SEC = 30.0
ESCALATION_FACTOR = 5
# stop 後に bestmove を待つ上限（秒）
STOP_GRACE_SEC = 1.0

# mate scores are folded into these sentinels
MATE_SCORE = 10000

DEFAULT_OUTPUT = "results.sfen"
DEFAULT_TARGET = 1000
DEFAULT_WORKERS = 16

# sent after the handshake, in this order
ENGINE_OPTIONS = [
    ("Contempt", "0"),
    # draws are useless for tsume
    ("DrawScore", "1000"),
    ("ResignValue", "-32767"),
    ("UCI_AnalyseMode", "true"),
    ("TsumeMode", "true"),
]
