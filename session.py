import time
from typing import Callable, Dict, List, Optional

from chain import ChainError, ChainErrorKind
from scoring import ScoringEngine
from utils import GameMode, normalize, vlog

HINT_COUNT = 3


class GameSession:
    """One player's game: the chain, its timings, and the scoring state.

    Sessions are not shared. The validator (and the index behind it) can be.
    """

    def __init__(
        self,
        validator,
        scoring: Optional[ScoringEngine] = None,
        mode: GameMode = GameMode.ENDLESS,
        start_word: Optional[str] = None,
        target_word: Optional[str] = None,
        par_moves: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
        achievement_hook: Optional[Callable[["GameSession", Dict], object]] = None,
    ):
        self.validator = validator
        self.scoring = scoring if scoring is not None else ScoringEngine()
        self.mode = mode
        self.target_word = normalize(target_word) if target_word else None
        self.par_moves = par_moves
        self.clock = clock
        self.achievement_hook = achievement_hook

        self.chain: List[str] = [normalize(start_word)] if start_word else []
        self.word_timings: Dict[str, float] = {}
        self.word_scores = {}
        self.invalid_attempts = 0
        self.hints_used = 0
        self.power_ups_used = set()
        self.is_complete = False
        self.started_at = clock()
        self.last_move_at = self.started_at
        self.scoring.reset()

    @classmethod
    def from_puzzle(cls, puzzle, validator, **kwargs):
        return cls(
            validator,
            mode=GameMode.DAILY,
            start_word=puzzle.start_word,
            target_word=puzzle.target_word,
            par_moves=puzzle.par_moves,
            **kwargs,
        )

    def _reject(self, error: ChainError) -> Dict:
        self.invalid_attempts += 1
        penalty = self.scoring.record_invalid_attempt()
        self.scoring.reset()
        vlog(f"Rejected move: {error}")
        return {
            'valid': False,
            'reason': error.reason,
            'penalty': penalty,
            'score': self.current_score().to_dict(),
        }

    def submit_word(self, word, move_time=None) -> Dict:
        """Validate, apply and score one move."""
        if self.is_complete:
            return {'valid': False, 'reason': 'Game is already complete', 'score': self.current_score().to_dict()}

        word = normalize(word)
        result = self.validator.validate_next_word(self.chain, word)
        if not result.valid:
            return self._reject(result.error)

        if self.mode is GameMode.DAILY and result.is_terminal and word != self.target_word:
            return self._reject(ChainError(ChainErrorKind.TERMINAL_NOT_ALLOWED, word=word))

        now = self.clock()
        if move_time is None:
            move_time = now - self.last_move_at
        self.last_move_at = now

        self.chain.append(word)
        self.word_timings[word] = move_time
        word_score = self.scoring.score_move(word, move_time)
        self.word_scores[word] = word_score

        if self.mode is GameMode.DAILY:
            self.is_complete = word == self.target_word
        else:
            self.is_complete = bool(result.is_terminal)

        response = result.to_dict()
        response.update({
            'wordScore': word_score.to_dict(),
            'score': self.current_score().to_dict(),
            'gameComplete': self.is_complete,
        })
        if self.achievement_hook is not None:
            response['achievements'] = self.achievement_hook(self, response)
        return response

    def valid_next_words(self):
        if not self.chain:
            return []
        used = set(self.chain)
        return [w for w in self.validator.find_possible_next_words(self.chain[-1]) if w not in used]

    def use_hint(self) -> List[str]:
        if not self.chain:
            return []
        self.hints_used += 1
        return self.valid_next_words()[:HINT_COUNT]

    def undo(self) -> bool:
        """Take back the last move. The start word always stays."""
        if len(self.chain) <= 1 or self.is_complete:
            return False
        word = self.chain.pop()
        self.word_timings.pop(word, None)
        self.word_scores.pop(word, None)
        self.power_ups_used.add('undo')
        self.scoring.reset()
        return True

    def current_score(self):
        ends_on_terminal = len(self.chain) > 1 and self.validator.is_terminal_word(self.chain[-1])
        return self.scoring.aggregate(
            self.chain,
            self.word_scores,
            mode=self.mode,
            ends_on_terminal=ends_on_terminal,
            par_moves=self.par_moves,
            completed=self.is_complete,
            duration=sum(self.word_timings.values()),
            invalid_attempts=self.invalid_attempts,
            hints_used=self.hints_used,
            power_ups_used=self.power_ups_used,
        )

    def result(self) -> Dict:
        return {
            'chain': list(self.chain),
            'mode': self.mode.value,
            'score': self.current_score().to_dict(),
            'moveCount': max(0, len(self.chain) - 1),
            'parMoves': self.par_moves,
            'invalidAttempts': self.invalid_attempts,
            'hintsUsed': self.hints_used,
            'powerUpsUsed': sorted(self.power_ups_used),
            'terminalWords': [w for w in self.chain if self.validator.is_terminal_word(w)],
            'complete': self.is_complete,
        }
