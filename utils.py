# --- utils.py ---

import re
import time
import threading
from collections import OrderedDict
from enum import Enum
from colorama import Fore, Style, init

init()

DICT_URL = "https://raw.githubusercontent.com/dwyl/english-words/master/words_alpha.txt"

# Number of trailing letters a word hands on to the next word
CHAIN_LINK = 2
MIN_WORD_LENGTH = 2

RARE_LETTERS = frozenset("JQXZ")

# Branching thresholds used to rate how open a position is
BRANCHING_THRESHOLDS = {
    'LOW': 3,
    'MEDIUM': 7,
    'HIGH': 15,
}

WORD_RE = re.compile(r"^[a-z]+$")

VERBOSE = False
start_time = None

# Lock used for synchronized printing across threads
PRINT_LOCK = threading.Lock()


class GameMode(Enum):
    DAILY = "daily"
    ENDLESS = "endless"


class Difficulty(Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


def normalize(word):
    return word.strip().lower()


def link_of(word):
    """Letters the next word in a chain has to start with."""
    return normalize(word)[-CHAIN_LINK:]


def rare_letters_in(word):
    return [ch for ch in word.upper() if ch in RARE_LETTERS]


def mask_word(word, reveal=3):
    return f"{word[:reveal]}..."


def difficulty_for_branching(branching):
    if branching >= BRANCHING_THRESHOLDS['HIGH']:
        return Difficulty.EASY
    if branching >= BRANCHING_THRESHOLDS['MEDIUM']:
        return Difficulty.MEDIUM
    return Difficulty.HARD


class LRUCache(OrderedDict):
    def __init__(self, maxsize=50000, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.maxsize = maxsize
    def __getitem__(self, key):
        value = super().__getitem__(key)
        self.move_to_end(key)
        return value
    def __setitem__(self, key, value):
        if key in self:
            self.move_to_end(key)
        super().__setitem__(key, value)
        if len(self) > self.maxsize:
            oldest = next(iter(self))
            del self[oldest]


def log_with_time(msg, color=Fore.LIGHTBLUE_EX):
    """Print ``msg`` with a timestamp."""
    global start_time
    if start_time is None:
        start_time = time.time()
    elapsed = time.time() - start_time
    mins = int(elapsed // 60)
    secs = elapsed % 60
    timestamp = Style.DIM + f"[{mins:02}:{secs:06.3f}]" + Style.RESET_ALL
    with PRINT_LOCK:
        print(f"{timestamp} {color}{msg}{Style.RESET_ALL}", flush=True)

def vlog(msg, t0=None):
    if VERBOSE:
        if t0 is not None:
            elapsed = time.time() - t0
            log_with_time(f"{msg} (took {elapsed:.3f}s)")
        else:
            log_with_time(msg)
