import math
from dataclasses import dataclass, field, asdict
from typing import Dict, Iterable, Optional

from utils import GameMode, RARE_LETTERS, normalize, rare_letters_in


@dataclass(frozen=True)
class ScoringRules:
    base_points: int = 10
    length_bonus: int = 5          # per letter beyond length_free
    length_free: int = 4
    rare_letter_bonus: int = 15
    rare_letter_policy: str = "occurrence"   # or "distinct"
    streak_bonus: int = 10         # per streak step beyond the first
    speed_bonus: int = 20
    speed_threshold: float = 5.0   # seconds
    terminal_bonus: int = 50
    multiplier_step: float = 0.5
    multiplier_every: int = 5
    daily_completion: int = 100
    daily_under_par: int = 50
    daily_fast_solve: int = 75
    daily_fast_solve_seconds: float = 120.0
    daily_rare_letter: int = 25
    penalty_invalid_attempt: int = 5
    penalty_hint: int = 10
    penalty_power_up: int = 5


DEFAULT_RULES = ScoringRules()


@dataclass
class WordScore:
    base: int
    length: int
    rare_letters: int
    streak: int
    speed: int
    multiplier: float
    total: int

    @property
    def subtotal(self) -> int:
        return self.base + self.length + self.rare_letters + self.streak + self.speed

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['rareLetters'] = data.pop('rare_letters')
        return data


@dataclass
class GameScore:
    total: int = 0
    word_scores: Dict[str, WordScore] = field(default_factory=dict)
    multiplier: float = 1.0
    terminal_bonus: int = 0
    daily_bonus: int = 0
    penalties: int = 0

    def to_dict(self) -> Dict:
        return {
            'total': self.total,
            'wordScores': {w: s.to_dict() for w, s in self.word_scores.items()},
            'multiplier': self.multiplier,
            'terminalBonus': self.terminal_bonus,
            'dailyBonus': self.daily_bonus,
            'penalties': self.penalties,
        }


class ScoringEngine:
    """Deterministic scoring for chain moves.

    Holds only the running streak and multiplier; everything else is passed in,
    so a finished game can be replayed through calculate_score().
    """

    def __init__(self, rules: ScoringRules = DEFAULT_RULES):
        self.rules = rules
        self.streak = 0
        self.multiplier = 1.0

    def reset(self):
        self.streak = 0
        self.multiplier = 1.0

    def multiplier_for(self, streak: int) -> float:
        r = self.rules
        return 1 + (streak // r.multiplier_every) * r.multiplier_step

    def record_invalid_attempt(self) -> int:
        return self.rules.penalty_invalid_attempt

    def calculate_word_score(self, word: str, move_time: float, streak: int) -> WordScore:
        r = self.rules
        word = normalize(word)
        base = r.base_points
        length = max(0, len(word) - r.length_free) * r.length_bonus
        rare = rare_letters_in(word)
        if r.rare_letter_policy == "distinct":
            rare = set(rare)
        rare_points = len(rare) * r.rare_letter_bonus
        streak_points = (streak - 1) * r.streak_bonus if streak > 1 else 0
        speed = r.speed_bonus if move_time < r.speed_threshold else 0
        multiplier = self.multiplier_for(streak)
        subtotal = base + length + rare_points + streak_points + speed
        return WordScore(
            base=base,
            length=length,
            rare_letters=rare_points,
            streak=streak_points,
            speed=speed,
            multiplier=multiplier,
            total=math.floor(subtotal * multiplier),
        )

    def score_move(self, word: str, move_time: float) -> WordScore:
        """Score a move that has already been validated, advancing the streak."""
        self.streak += 1
        self.multiplier = self.multiplier_for(self.streak)
        return self.calculate_word_score(word, move_time, self.streak)

    def calculate_score(
        self,
        chain,
        word_timings: Optional[Dict[str, float]] = None,
        mode: GameMode = GameMode.ENDLESS,
        ends_on_terminal: bool = False,
        par_moves: Optional[int] = None,
        completed: bool = False,
        invalid_attempts: int = 0,
        hints_used: int = 0,
        power_ups_used: Iterable[str] = (),
    ) -> GameScore:
        """Replay ``chain`` from scratch. The first word is the given start word and scores nothing."""
        word_timings = {normalize(k): v for k, v in (word_timings or {}).items()}
        words = [normalize(w) for w in chain]

        self.reset()
        word_scores = {}
        for word in words[1:]:
            word_scores[word] = self.score_move(word, word_timings.get(word, 0))

        return self.aggregate(
            words,
            word_scores,
            mode=mode,
            ends_on_terminal=ends_on_terminal,
            par_moves=par_moves,
            completed=completed,
            duration=sum(word_timings.get(w, 0) for w in words[1:]),
            invalid_attempts=invalid_attempts,
            hints_used=hints_used,
            power_ups_used=power_ups_used,
        )

    def aggregate(
        self,
        words,
        word_scores: Dict[str, WordScore],
        mode: GameMode = GameMode.ENDLESS,
        ends_on_terminal: bool = False,
        par_moves: Optional[int] = None,
        completed: bool = False,
        duration: float = 0.0,
        invalid_attempts: int = 0,
        hints_used: int = 0,
        power_ups_used: Iterable[str] = (),
    ) -> GameScore:
        """Fold already scored words into a GameScore with bonuses and penalties."""
        r = self.rules
        score = GameScore(word_scores=dict(word_scores), multiplier=self.multiplier)
        words_total = sum(ws.total for ws in word_scores.values())

        if ends_on_terminal and len(words) > 1:
            score.terminal_bonus = r.terminal_bonus

        if mode is GameMode.DAILY and completed:
            moves = len(words) - 1
            score.daily_bonus += r.daily_completion
            if par_moves is not None and moves <= par_moves:
                score.daily_bonus += r.daily_under_par
            if duration < r.daily_fast_solve_seconds:
                score.daily_bonus += r.daily_fast_solve
            distinct_rare = {ch for w in words for ch in w.upper() if ch in RARE_LETTERS}
            score.daily_bonus += len(distinct_rare) * r.daily_rare_letter

        score.penalties = (
            invalid_attempts * r.penalty_invalid_attempt
            + hints_used * r.penalty_hint
            + len(set(power_ups_used)) * r.penalty_power_up
        )
        score.total = max(0, words_total + score.terminal_bonus + score.daily_bonus - score.penalties)
        return score


def score_breakdown(score: GameScore) -> str:
    ws = score.word_scores.values()
    return "\n".join([
        f"Base Score: {sum(s.base for s in ws)}",
        f"Length Bonuses: {sum(s.length for s in ws)}",
        f"Rare Letters: {sum(s.rare_letters for s in ws)}",
        f"Streak Bonuses: {sum(s.streak for s in ws)}",
        f"Speed Bonuses: {sum(s.speed for s in ws)}",
        f"Terminal Bonus: {score.terminal_bonus}",
        f"Daily Bonus: {score.daily_bonus}",
        f"Penalties: {score.penalties}",
        f"Final Multiplier: {score.multiplier}x",
        f"Total Score: {score.total}",
    ])
