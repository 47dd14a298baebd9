import time
import random
from collections import deque
from typing import List, Optional, Tuple

from colorama import Fore

from utils import Difficulty, log_with_time, mask_word, normalize, vlog
from puzzle_store import DailyPuzzle


class PuzzleGenerationError(Exception):
    pass


class NoPuzzleFound(PuzzleGenerationError):
    pass


class NoStartWordFound(NoPuzzleFound):
    pass


# (max shortest-path moves, min mean branching, par slack)
DIFFICULTY_TIERS = [
    (Difficulty.EASY, 3, 5, 1),
    (Difficulty.MEDIUM, 5, 3, 2),
]
HARD_SLACK = 3


class PuzzleGenerator:
    """Builds daily start/target puzzles by bounded breadth-first search.

    The validator's next-word enumeration is the only way this class reads the
    dictionary. Search state lives inside each call, so one generator can serve
    several callers as long as they do not share its ``rng``.
    """

    MIN_WORD_LENGTH = 4
    MIN_PATH_LENGTH = 4
    MAX_DEPTH = 8
    MAX_VALID_PATHS = 5
    START_ATTEMPTS = 10
    MIN_BRANCHING = 5

    def __init__(
        self,
        validator,
        rng: Optional[random.Random] = None,
        min_word_length: int = MIN_WORD_LENGTH,
        min_path_length: int = MIN_PATH_LENGTH,
        max_depth: int = MAX_DEPTH,
        max_valid_paths: int = MAX_VALID_PATHS,
        start_attempts: int = START_ATTEMPTS,
        min_branching: int = MIN_BRANCHING,
    ):
        self.validator = validator
        self.rng = rng if rng is not None else random.Random()
        self.min_word_length = min_word_length
        self.min_path_length = min_path_length
        self.max_depth = max_depth
        self.max_valid_paths = max_valid_paths
        self.start_attempts = start_attempts
        self.min_branching = min_branching

    def _neighbours(self, word):
        return [w for w in self.validator.find_possible_next_words(word) if len(w) >= self.min_word_length]

    # ---------- Start word ----------
    def select_start_word(self) -> str:
        prefixes = self.validator.index.prefixes(2)
        best_word = None
        best_branching = 0
        if prefixes:
            for attempt in range(1, self.start_attempts + 1):
                prefix = self.rng.choice(prefixes)
                for word in self.validator.index.words_with_prefix(prefix):
                    if len(word) < self.min_word_length:
                        continue
                    branching = len(self.validator.find_possible_next_words(word))
                    if branching > best_branching:
                        best_branching = branching
                        best_word = word
                vlog(f"Start sampling {attempt}/{self.start_attempts}: prefix '{prefix}', best {best_word} ({best_branching})")
                if best_branching > self.min_branching:
                    return best_word
        raise NoStartWordFound(
            f"No start word with branching factor above {self.min_branching} "
            f"after {self.start_attempts} attempts"
        )

    # ---------- Path search ----------
    def find_all_valid_paths(self, start, target, max_depth=None, deadline=None) -> List[List[str]]:
        """Breadth-first search from ``start`` to ``target``.

        Each intermediate word is visited at most once per search, so the result
        is a sample of short routes rather than every route. The target itself
        is exempt from the visited set and is never expanded.
        """
        start, target = normalize(start), normalize(target)
        # a route back to the start word would repeat it
        if start == target:
            return []
        if max_depth is None:
            max_depth = self.max_depth
        visited = {start}
        queue = deque([[start]])
        paths = []
        expanded = 0

        while queue and len(paths) < self.max_valid_paths:
            if deadline is not None and time.time() >= deadline:
                raise NoPuzzleFound(f"Timed out searching paths from '{start}' to '{target}'")
            path = queue.popleft()
            word = path[-1]

            if word == target and len(path) > 1:
                if len(path) >= self.min_path_length:
                    paths.append(path)
                continue
            if len(path) - 1 >= max_depth:
                continue

            expanded += 1
            for nxt in self._neighbours(word):
                if nxt == target:
                    queue.append(path + [nxt])
                elif nxt not in visited:
                    visited.add(nxt)
                    queue.append(path + [nxt])

        vlog(f"Path search {start} -> {target}: {len(paths)} path(s), {expanded} words expanded")
        return paths

    # ---------- Rating ----------
    def mean_branching(self, paths) -> float:
        factors = [
            len(self.validator.find_possible_next_words(word))
            for path in paths
            for word in path[:-1]
        ]
        return sum(factors) / len(factors) if factors else 0.0

    def calculate_difficulty(self, paths) -> Tuple[Difficulty, int, float]:
        if not paths:
            raise ValueError("calculate_difficulty needs at least one path")
        shortest = min(len(p) for p in paths) - 1
        branching = self.mean_branching(paths)
        for tier, max_moves, min_branching, slack in DIFFICULTY_TIERS:
            if shortest <= max_moves and branching > min_branching:
                return tier, shortest + slack, branching
        return Difficulty.HARD, shortest + HARD_SLACK, branching

    def generate_hints(self, paths) -> List[str]:
        if not paths:
            return []
        shortest = min(paths, key=len)
        return [mask_word(word) for word in shortest[1:]]

    # ---------- Pipeline ----------
    def generate_daily_puzzle(self, date, start_word=None, timeout=None) -> DailyPuzzle:
        t0 = time.time()
        deadline = t0 + timeout if timeout is not None else None

        vlog("Puzzle generation: Sampling")
        if start_word is None:
            start_word = self.select_start_word()
        start_word = normalize(start_word)
        vlog(f"Puzzle generation: StartSelected '{start_word}'")

        vlog("Puzzle generation: SearchingPaths")
        best_paths = []
        target_word = None
        for candidate in self._neighbours(start_word):
            if candidate == start_word:
                continue
            paths = self.find_all_valid_paths(start_word, candidate, deadline=deadline)
            if len(paths) > len(best_paths):
                best_paths = paths
                target_word = candidate
            if len(best_paths) >= self.max_valid_paths:
                break

        if not best_paths:
            raise NoPuzzleFound(f"No target reachable from '{start_word}' within {self.max_depth} moves")

        difficulty, par_moves, branching = self.calculate_difficulty(best_paths)
        puzzle = DailyPuzzle(
            date=str(date),
            start_word=start_word,
            target_word=target_word,
            par_moves=par_moves,
            difficulty=difficulty,
            valid_paths=best_paths,
            hints=self.generate_hints(best_paths),
            branching_factor=branching,
            optimal_path_count=len(best_paths),
        )
        vlog(f"Puzzle generation: PuzzleReady {start_word} -> {target_word}", t0)
        log_with_time(
            f"Puzzle {puzzle.date}: {start_word} -> {target_word}, par {par_moves}, {difficulty.value}",
            color=Fore.GREEN,
        )
        return puzzle

    def validate_puzzle(self, puzzle) -> bool:
        """Re-derive at least one legal route between the puzzle's start and target."""
        index = self.validator.index
        if not index.is_valid_word(puzzle.start_word) or not index.is_valid_word(puzzle.target_word):
            return False
        if normalize(puzzle.start_word) == normalize(puzzle.target_word):
            return False
        paths = self.find_all_valid_paths(puzzle.start_word, puzzle.target_word)
        return any(self.validator.validate_chain(p) is None for p in paths)
