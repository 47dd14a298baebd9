import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import random
import pytest
from dictionary import WordIndex
from chain import ChainValidator
from generator import PuzzleGenerator, NoPuzzleFound, NoStartWordFound
from utils import Difficulty

# "stale" has six "le" neighbours; two of them lead back into the "le" bucket
CORPUS = ["stale", "ledge", "leash", "legal", "lemon", "lever", "level", "shingle", "allele"]
SPARSE = ["stale", "lead", "leak", "lean", "leap", "lear", "lens"]


class FixedChoice:
    """Stands in for random.Random, always picking the given prefix."""
    def __init__(self, prefix):
        self.prefix = prefix
    def choice(self, seq):
        assert self.prefix in seq
        return self.prefix


def make_generator(corpus, **kwargs):
    return PuzzleGenerator(ChainValidator(WordIndex.build(corpus)), **kwargs)


def test_find_all_valid_paths():
    gen = make_generator(CORPUS)
    paths = gen.find_all_valid_paths("stale", "ledge")
    assert paths == [
        ["stale", "leash", "shingle", "ledge"],
        ["stale", "legal", "allele", "ledge"],
    ]
    for path in paths:
        assert gen.validator.validate_chain(path) is None
        assert len(path) >= gen.min_path_length


def test_path_search_respects_depth_cap():
    gen = make_generator(CORPUS)
    assert gen.find_all_valid_paths("stale", "ledge", max_depth=2) == []


def test_path_search_respects_path_cap():
    gen = make_generator(CORPUS, max_valid_paths=1)
    assert len(gen.find_all_valid_paths("stale", "ledge")) == 1


def test_select_start_word_prefers_branching():
    gen = make_generator(CORPUS, rng=FixedChoice("st"))
    assert gen.select_start_word() == "stale"


def test_select_start_word_fails_when_graph_is_thin():
    gen = make_generator(["stale", "lemon", "once"], rng=random.Random(7))
    with pytest.raises(NoStartWordFound):
        gen.select_start_word()


def test_select_start_word_empty_index():
    gen = make_generator([], rng=random.Random(7))
    with pytest.raises(NoStartWordFound):
        gen.select_start_word()


def test_generate_daily_puzzle():
    gen = make_generator(CORPUS, rng=FixedChoice("st"))
    puzzle = gen.generate_daily_puzzle("2026-10-19")
    assert puzzle.date == "2026-10-19"
    assert puzzle.start_word == "stale"
    # every "le" word is reachable twice, so the first candidate wins the tie
    assert puzzle.target_word == "ledge"
    assert len(puzzle.valid_paths) == 2
    assert puzzle.optimal_path_count == 2
    assert puzzle.difficulty is Difficulty.MEDIUM
    assert puzzle.par_moves == 3 + 2
    assert puzzle.hints == ["lea...", "shi...", "led..."]
    for path in puzzle.valid_paths:
        assert path[0] == "stale" and path[-1] == "ledge"
        assert gen.validator.validate_chain(path) is None
    assert gen.validate_puzzle(puzzle)


def test_generate_with_explicit_start_word():
    gen = make_generator(CORPUS)
    puzzle = gen.generate_daily_puzzle("2026-10-20", start_word="Stale")
    assert puzzle.start_word == "stale"
    assert gen.validate_puzzle(puzzle)


def test_sparse_corpus_has_no_puzzle():
    gen = make_generator(SPARSE)
    with pytest.raises(NoPuzzleFound):
        gen.generate_daily_puzzle("2026-10-19", start_word="stale")


def test_sparse_corpus_without_start_word_has_no_puzzle():
    gen = make_generator(["puzzle", "lethal", "alliance"], rng=random.Random(1))
    with pytest.raises(NoPuzzleFound):
        gen.generate_daily_puzzle("2026-10-19")


def test_no_route_back_to_the_start_word():
    gen = make_generator(["abcd", "cdef", "efgh", "ghab"])
    assert gen.find_all_valid_paths("abcd", "abcd") == []
    assert gen.find_all_valid_paths("abcd", "ghab") == [["abcd", "cdef", "efgh", "ghab"]]


def test_timeout_is_reported_as_no_puzzle():
    gen = make_generator(CORPUS)
    with pytest.raises(NoPuzzleFound):
        gen.generate_daily_puzzle("2026-10-19", start_word="stale", timeout=0)


def test_calculate_difficulty_tiers():
    gen = make_generator(CORPUS)
    paths = [["stale", "leash", "shingle", "ledge"], ["stale", "legal", "allele", "ledge"]]
    tier, par, branching = gen.calculate_difficulty(paths)
    assert branching == pytest.approx(26 / 6)
    assert tier is Difficulty.MEDIUM
    assert par == 5

    # a single long, narrow route is hard
    long_path = ["stale", "leash", "shingle", "legal", "allele", "ledge", "lemon"]
    tier, par, _ = gen.calculate_difficulty([long_path])
    assert tier is Difficulty.HARD
    assert par == 6 + 3

    with pytest.raises(ValueError):
        gen.calculate_difficulty([])


def test_easy_tier_needs_short_and_open_paths():
    corpus = ["stale", "leaf", "lean", "leap", "leek", "lens", "lest", "left", "leto",
              "stab", "stir", "stow", "step", "stub", "stun"]
    gen = make_generator(corpus)
    tier, par, branching = gen.calculate_difficulty([["stale", "lest", "stub"]])
    assert branching == pytest.approx((8 + 7) / 2)
    assert tier is Difficulty.EASY
    assert par == 2 + 1


def test_generate_hints_uses_shortest_path():
    gen = make_generator(CORPUS)
    paths = [["stale", "legal", "allele", "lemon", "once"], ["stale", "leash", "shingle", "ledge"]]
    assert gen.generate_hints(paths) == ["lea...", "shi...", "led..."]
    assert gen.generate_hints([]) == []


def test_validate_puzzle_detects_broken_puzzle():
    gen = make_generator(CORPUS, rng=FixedChoice("st"))
    puzzle = gen.generate_daily_puzzle("2026-10-19")

    shrunk = make_generator([w for w in CORPUS if w not in ("shingle", "allele")])
    assert not shrunk.validate_puzzle(puzzle)

    puzzle.target_word = "blorp"
    assert not gen.validate_puzzle(puzzle)
