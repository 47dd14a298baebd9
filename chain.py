from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from utils import (
    BRANCHING_THRESHOLDS,
    MIN_WORD_LENGTH,
    Difficulty,
    LRUCache,
    difficulty_for_branching,
    link_of,
    mask_word,
    normalize,
    rare_letters_in,
)

MAX_ALTERNATIVE_DEPTH = 3
MAX_ALTERNATIVE_PATHS = 5
# Next words followed when looking more than one move ahead
LOOKAHEAD_FANOUT = 3


class ChainErrorKind(Enum):
    EMPTY_CHAIN = "EmptyChain"
    TOO_SHORT = "TooShort"
    DUPLICATE_WORD = "DuplicateWord"
    UNKNOWN_WORD = "UnknownWord"
    CHAIN_RULE_VIOLATION = "ChainRuleViolation"
    TERMINAL_NOT_ALLOWED = "TerminalNotAllowed"


@dataclass(frozen=True)
class ChainError:
    kind: ChainErrorKind
    word: Optional[str] = None
    previous: Optional[str] = None

    @property
    def reason(self) -> str:
        if self.kind is ChainErrorKind.EMPTY_CHAIN:
            return "Chain is empty"
        if self.kind is ChainErrorKind.TOO_SHORT:
            return f"Word must be at least {MIN_WORD_LENGTH} letters long"
        if self.kind is ChainErrorKind.DUPLICATE_WORD:
            return f'"{self.word}" has already been used in this chain'
        if self.kind is ChainErrorKind.UNKNOWN_WORD:
            return f'"{self.word}" is not in the dictionary'
        if self.kind is ChainErrorKind.CHAIN_RULE_VIOLATION:
            return f'Word must start with "{link_of(self.previous)}"'
        return "Terminal words are not allowed in Daily Challenge mode"

    def __str__(self):
        return f"{self.kind.value}: {self.reason}"


@dataclass
class ValidationResult:
    valid: bool
    error: Optional[ChainError] = None
    branching_factor: Optional[int] = None
    is_terminal: Optional[bool] = None
    possible_next_moves: Optional[int] = None
    rare_letters_used: List[str] = field(default_factory=list)
    path_difficulty: Optional[str] = None
    suggested_hints: Optional[List[str]] = None

    @property
    def reason(self) -> Optional[str]:
        return self.error.reason if self.error else None

    def to_dict(self) -> Dict:
        if not self.valid:
            return {'valid': False, 'reason': self.reason}
        data = {
            'valid': True,
            'branchingFactor': self.branching_factor,
            'isTerminal': self.is_terminal,
            'possibleNextMoves': self.possible_next_moves,
            'rareLettersUsed': list(self.rare_letters_used),
            'pathDifficulty': self.path_difficulty,
        }
        if self.suggested_hints:
            data['suggestedHints'] = list(self.suggested_hints)
        return data


class ChainValidator:
    """Enforces the chain rule over a WordIndex and exposes the word graph.

    The index is never mutated, so next-word lookups are memoised per validator.
    """

    def __init__(self, index, cache_size: int = 50000):
        self.index = index
        self._next_cache = LRUCache(cache_size)

    # ---------- Core rules ----------
    def validate_chain(self, chain) -> Optional[ChainError]:
        """Return the first violation scanning left to right, or None if the chain is legal."""
        if not chain:
            return ChainError(ChainErrorKind.EMPTY_CHAIN)
        seen = set()
        prev = None
        for raw in chain:
            word = normalize(raw)
            if word in seen:
                return ChainError(ChainErrorKind.DUPLICATE_WORD, word=word)
            seen.add(word)
            if not self.index.is_valid_word(word):
                return ChainError(ChainErrorKind.UNKNOWN_WORD, word=word)
            if prev is not None and not word.startswith(link_of(prev)):
                return ChainError(ChainErrorKind.CHAIN_RULE_VIOLATION, word=word, previous=prev)
            prev = word
        return None

    def is_terminal_word(self, word) -> bool:
        if not self.index.is_valid_word(word):
            return False
        return not self.index.words_with_prefix(link_of(word))

    def find_possible_next_words(self, word) -> Tuple[str, ...]:
        key = normalize(word)
        if key in self._next_cache:
            return self._next_cache[key]
        if not self.index.is_valid_word(key):
            result = ()
        else:
            result = self.index.words_with_prefix(link_of(key))
        self._next_cache[key] = result
        return result

    def validate_next_word(self, chain, candidate) -> ValidationResult:
        word = normalize(candidate)
        if len(word) < MIN_WORD_LENGTH:
            return ValidationResult(False, ChainError(ChainErrorKind.TOO_SHORT, word=word))
        if not self.index.is_valid_word(word):
            return ValidationResult(False, ChainError(ChainErrorKind.UNKNOWN_WORD, word=word))
        used = {normalize(w) for w in chain}
        if word in used:
            return ValidationResult(False, ChainError(ChainErrorKind.DUPLICATE_WORD, word=word))
        if chain:
            prev = normalize(chain[-1])
            if not word.startswith(link_of(prev)):
                return ValidationResult(
                    False, ChainError(ChainErrorKind.CHAIN_RULE_VIOLATION, word=word, previous=prev)
                )

        used.add(word)
        following = self.find_possible_next_words(word)
        next_moves = [w for w in following if w not in used]
        branching = len(following)
        difficulty = difficulty_for_branching(branching)

        hints = None
        if difficulty is Difficulty.HARD and next_moves:
            hints = [mask_word(w) for w in next_moves[:3]]

        return ValidationResult(
            True,
            branching_factor=branching,
            is_terminal=branching == 0,
            possible_next_moves=len(next_moves),
            rare_letters_used=rare_letters_in(word),
            path_difficulty=difficulty.value,
            suggested_hints=hints,
        )

    # ---------- Graph analysis ----------
    def branching_factor(self, word, depth: int = 1) -> float:
        """Number of next words, or a depth-normalised look-ahead estimate for depth > 1."""
        if depth <= 0:
            return 0
        next_words = self.find_possible_next_words(word)
        if depth == 1:
            return len(next_words)
        total = len(next_words)
        for nxt in next_words[:LOOKAHEAD_FANOUT]:
            total += self.branching_factor(nxt, depth - 1)
        return total / (depth * 2)

    def find_dead_end_words(self, word, depth: int = 2) -> List[str]:
        """Next words with few continuations, looking ahead through the first few live ones."""
        dead_ends = []
        live = []
        for nxt in self.find_possible_next_words(word):
            if self.branching_factor(nxt) <= BRANCHING_THRESHOLDS['LOW']:
                dead_ends.append(nxt)
            else:
                live.append(nxt)
        if depth > 0:
            for nxt in live[:LOOKAHEAD_FANOUT]:
                dead_ends.extend(self.find_dead_end_words(nxt, depth - 1))
        return list(dict.fromkeys(dead_ends))

    def find_alternative_paths(self, chain, depth: int = MAX_ALTERNATIVE_DEPTH,
                               limit: int = MAX_ALTERNATIVE_PATHS) -> List[List[str]]:
        """Short continuations of ``chain`` that never reuse one of its words."""
        if not chain:
            return []
        visited = {normalize(w) for w in chain}
        paths: List[List[str]] = []

        def explore(current, path, current_depth):
            if current_depth >= depth or len(paths) >= limit:
                return
            for nxt in self.find_possible_next_words(current):
                if len(paths) >= limit:
                    return
                if nxt in visited:
                    continue
                new_path = path + [nxt]
                paths.append(new_path)
                visited.add(nxt)
                explore(nxt, new_path, current_depth + 1)
                visited.discard(nxt)

        explore(normalize(chain[-1]), [], 0)
        return paths

    def chain_stats(self, chain) -> Dict:
        words = [normalize(w) for w in chain]
        unique_letters = set()
        rare = []
        for w in words:
            unique_letters.update(w.upper())
            for ch in rare_letters_in(w):
                if ch not in rare:
                    rare.append(ch)
        branching = [self.branching_factor(w) for w in words]
        avg_branching = sum(branching) / len(branching) if branching else 0
        return {
            'length': len(words),
            'unique_letters': unique_letters,
            'rare_letters': rare,
            'average_word_length': sum(len(w) for w in words) / len(words) if words else 0,
            'longest_word': max(words, key=len) if words else '',
            'terminal_words': [w for w in words if self.is_terminal_word(w)],
            'branching_factors': branching,
            'path_difficulty': difficulty_for_branching(avg_branching).value,
        }

    def analyze_path(self, chain) -> Dict:
        if not chain:
            raise ValueError("analyze_path needs at least one word")
        words = [normalize(w) for w in chain]
        factors = [self.branching_factor(w, 2) for w in words]
        dead_ends = []
        for w in words:
            dead_ends.extend(self.find_dead_end_words(w))
        avg = sum(factors) / len(factors)
        medium = BRANCHING_THRESHOLDS['MEDIUM']
        terminal_risk = max(0.0, min(1.0, (medium - avg) / medium))
        used = set(words)
        suggested = sorted(
            (w for w in self.find_possible_next_words(words[-1]) if w not in used),
            key=len,
            reverse=True,
        )[:3]
        return {
            'average_branching_factor': avg,
            'max_branching_factor': max(factors),
            'min_branching_factor': min(factors),
            'terminal_risk': terminal_risk,
            'difficulty': difficulty_for_branching(avg).value,
            'suggested_moves': suggested,
            'alternative_paths': self.find_alternative_paths(words),
            'dead_end_words': list(dict.fromkeys(dead_ends)),
        }
