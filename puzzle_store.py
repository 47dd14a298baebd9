import os
import json
from dataclasses import dataclass, field
from glob import glob
from typing import Dict, List

from colorama import Fore

from utils import Difficulty, log_with_time

PUZZLES_DIR = 'puzzles'
OPTIONAL_METADATA = ('averageCompletionTime', 'totalAttempts', 'successRate')


@dataclass
class DailyPuzzle:
    date: str
    start_word: str
    target_word: str
    par_moves: int
    difficulty: Difficulty
    valid_paths: List[List[str]]
    hints: List[str] = field(default_factory=list)
    branching_factor: float = 0.0
    optimal_path_count: int = 0
    extra_metadata: Dict = field(default_factory=dict)

    def to_dict(self):
        metadata = {
            'branchingFactor': self.branching_factor,
            'optimalPathCount': self.optimal_path_count,
        }
        metadata.update(self.extra_metadata)
        return {
            'date': self.date,
            'startWord': self.start_word,
            'targetWord': self.target_word,
            'parMoves': self.par_moves,
            'difficulty': self.difficulty.value,
            'validPaths': [list(p) for p in self.valid_paths],
            'hints': list(self.hints),
            'metadata': metadata,
        }

    @classmethod
    def from_dict(cls, data):
        metadata = data.get('metadata') or {}
        return cls(
            date=data['date'],
            start_word=data['startWord'],
            target_word=data['targetWord'],
            par_moves=int(data['parMoves']),
            difficulty=Difficulty(data['difficulty']),
            valid_paths=[list(p) for p in data.get('validPaths', [])],
            hints=list(data.get('hints', [])),
            branching_factor=metadata.get('branchingFactor', 0.0),
            optimal_path_count=metadata.get('optimalPathCount', len(data.get('validPaths', []))),
            extra_metadata={k: metadata[k] for k in OPTIONAL_METADATA if k in metadata},
        )


def puzzle_path(date, puzzles_dir=PUZZLES_DIR):
    return os.path.join(puzzles_dir, f"puzzle_{date}.json")


def save_puzzle(puzzle, puzzles_dir=PUZZLES_DIR):
    """Write ``puzzle`` to its dated JSON file, replacing any earlier version."""
    os.makedirs(puzzles_dir, exist_ok=True)
    path = puzzle_path(puzzle.date, puzzles_dir)
    with open(path, 'w') as f:
        json.dump(puzzle.to_dict(), f, indent=2)
    log_with_time(f"Puzzle for {puzzle.date} saved to {path}", color=Fore.GREEN)
    return path


def find_latest_puzzle(puzzles_dir=PUZZLES_DIR):
    files = glob(os.path.join(puzzles_dir, 'puzzle_*.json'))
    if not files:
        raise FileNotFoundError('No puzzle files found.')
    # Dates are ISO formatted, so the name sorts chronologically
    return max(files)


def load_puzzle(path=None, puzzles_dir=PUZZLES_DIR):
    if path is None:
        path = find_latest_puzzle(puzzles_dir)
    with open(path, 'r') as f:
        return DailyPuzzle.from_dict(json.load(f))


def update_puzzle_metadata(date, puzzles_dir=PUZZLES_DIR, **metadata):
    """Merge play statistics (averageCompletionTime, totalAttempts, successRate) into a stored puzzle."""
    unknown = set(metadata) - set(OPTIONAL_METADATA)
    if unknown:
        raise ValueError(f"Unknown puzzle metadata: {', '.join(sorted(unknown))}")
    path = puzzle_path(date, puzzles_dir)
    if not os.path.exists(path):
        raise FileNotFoundError(f'Puzzle not found: {date}')
    puzzle = load_puzzle(path)
    puzzle.extra_metadata.update(metadata)
    save_puzzle(puzzle, puzzles_dir)
    return puzzle
