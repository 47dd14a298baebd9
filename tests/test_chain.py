import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest
from dictionary import WordIndex
from chain import ChainValidator, ChainErrorKind

CORPUS = ["puzzle", "lethal", "alliance", "castle", "jazz", "lemon", "once"]


@pytest.fixture
def validator():
    return ChainValidator(WordIndex.build(CORPUS))


def test_valid_chain(validator):
    assert validator.validate_chain(["puzzle", "lethal", "alliance"]) is None


def test_valid_chain_mixed_case(validator):
    assert validator.validate_chain(["Puzzle", "LETHAL", "alliance"]) is None


def test_chain_rule_violation(validator):
    error = validator.validate_chain(["puzzle", "castle"])
    assert error.kind is ChainErrorKind.CHAIN_RULE_VIOLATION
    assert error.previous == "puzzle"
    assert error.word == "castle"
    assert error.reason == 'Word must start with "le"'


def test_empty_chain(validator):
    assert validator.validate_chain([]).kind is ChainErrorKind.EMPTY_CHAIN


def test_duplicate_word_case_insensitive(validator):
    error = validator.validate_chain(["puzzle", "Lethal", "LETHAL"])
    assert error.kind is ChainErrorKind.DUPLICATE_WORD
    assert error.word == "lethal"


def test_first_violation_wins(validator):
    # "puzzle" -> "puzzle" also breaks the chain rule, but the repeat is seen first
    assert validator.validate_chain(["puzzle", "puzzle"]).kind is ChainErrorKind.DUPLICATE_WORD
    error = validator.validate_chain(["blorp", "puzzle", "castle"])
    assert error.kind is ChainErrorKind.UNKNOWN_WORD
    assert error.word == "blorp"


def test_unknown_word(validator):
    error = validator.validate_chain(["puzzle", "lexicon"])
    assert error.kind is ChainErrorKind.UNKNOWN_WORD
    assert "lexicon" in error.reason


def test_accepted_chains_obey_the_rule(validator):
    chain = ["puzzle", "lemon", "once"]
    assert validator.validate_chain(chain) is None
    for a, b in zip(chain, chain[1:]):
        assert b.startswith(a[-2:])
        assert validator.index.is_valid_word(a) and validator.index.is_valid_word(b)


def test_terminal_words(validator):
    assert validator.is_terminal_word("jazz")
    assert validator.is_terminal_word("alliance")
    assert not validator.is_terminal_word("puzzle")
    assert not validator.is_terminal_word("blorp")


def test_terminal_matches_next_words(validator):
    for word in CORPUS:
        assert validator.is_terminal_word(word) == (len(validator.find_possible_next_words(word)) == 0)


def test_find_possible_next_words(validator):
    assert "lethal" in validator.find_possible_next_words("puzzle")
    assert validator.find_possible_next_words("Puzzle") == ("lethal", "lemon")
    assert validator.find_possible_next_words("blorp") == ()


def test_validate_next_word_success(validator):
    result = validator.validate_next_word(["puzzle"], "lethal")
    assert result.valid
    assert result.branching_factor == 1
    assert result.is_terminal is False
    assert result.possible_next_moves == 1
    assert result.path_difficulty == "hard"
    assert result.suggested_hints == ["all..."]
    data = result.to_dict()
    assert data["valid"] is True
    assert data["branchingFactor"] == 1
    assert data["possibleNextMoves"] == 1
    assert "reason" not in data


def test_validate_next_word_rejections(validator):
    result = validator.validate_next_word(["puzzle"], "castle")
    assert not result.valid
    assert result.error.kind is ChainErrorKind.CHAIN_RULE_VIOLATION
    assert result.to_dict() == {"valid": False, "reason": 'Word must start with "le"'}

    assert validator.validate_next_word(["puzzle"], "l").error.kind is ChainErrorKind.TOO_SHORT
    assert validator.validate_next_word(["puzzle"], "lexicon").error.kind is ChainErrorKind.UNKNOWN_WORD
    assert validator.validate_next_word(["puzzle", "lethal"], "PUZZLE").error.kind is ChainErrorKind.DUPLICATE_WORD


def test_validate_next_word_terminal_and_rare(validator):
    result = validator.validate_next_word([], "jazz")
    assert result.valid
    assert result.is_terminal is True
    assert result.possible_next_moves == 0
    assert result.rare_letters_used == ["Z", "Z"]
    assert result.suggested_hints is None


def test_possible_next_moves_skip_used_words():
    validator = ChainValidator(WordIndex.build(["stale", "lest", "stop"]))
    result = validator.validate_next_word(["stale"], "lest")
    assert result.valid
    assert result.branching_factor == 2
    assert result.possible_next_moves == 1


def test_chain_stats(validator):
    stats = validator.chain_stats(["puzzle", "lethal", "alliance"])
    assert stats["length"] == 3
    assert stats["rare_letters"] == ["Z"]
    assert stats["longest_word"] == "alliance"
    assert stats["terminal_words"] == ["alliance"]
    assert stats["branching_factors"] == [2, 1, 0]
    assert stats["path_difficulty"] == "hard"


def test_branching_factor_and_dead_ends(validator):
    assert validator.branching_factor("puzzle") == 2
    assert validator.branching_factor("jazz") == 0
    # (2 + 1 + 1) / (2 * 2)
    assert validator.branching_factor("puzzle", depth=2) == 1.0
    assert validator.find_dead_end_words("puzzle") == ["lethal", "lemon"]
    assert validator.find_dead_end_words("jazz") == []


def test_dead_end_lookahead_follows_few_words(monkeypatch):
    # every "le" word leads back into the same five-word bucket
    corpus = ["stale", "leable", "leaple", "leacle", "leadle", "leafle"]
    validator = ChainValidator(WordIndex.build(corpus))
    expanded = []
    original = validator.find_dead_end_words

    def spy(word, depth=2):
        expanded.append(word)
        return original(word, depth)

    monkeypatch.setattr(validator, "find_dead_end_words", spy)
    assert validator.find_dead_end_words("stale") == []
    assert set(expanded) == {"stale", "leable", "leaple", "leacle"}


def test_find_alternative_paths(validator):
    paths = validator.find_alternative_paths(["puzzle"])
    assert paths == [["lethal"], ["lethal", "alliance"], ["lemon"], ["lemon", "once"]]
    assert validator.find_alternative_paths(["puzzle"], limit=2) == [["lethal"], ["lethal", "alliance"]]
    assert validator.find_alternative_paths([]) == []


def test_analyze_path(validator):
    analysis = validator.analyze_path(["puzzle"])
    assert analysis["suggested_moves"] == ["lethal", "lemon"]
    assert 0.0 <= analysis["terminal_risk"] <= 1.0
    assert analysis["difficulty"] == "hard"
    assert analysis["alternative_paths"][0] == ["lethal"]
    with pytest.raises(ValueError):
        validator.analyze_path([])
