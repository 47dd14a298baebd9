import argparse
import json
import random
import time
from datetime import date as date_cls

import requests
from colorama import Fore

import utils
from utils import DICT_URL, log_with_time, mask_word
from dictionary import WordIndex, load_word_corpus
from chain import ChainValidator
from generator import PuzzleGenerator, PuzzleGenerationError
from puzzle_store import PUZZLES_DIR, load_puzzle, save_puzzle


def build_validator(source):
    log_with_time("⟳ Loading dictionary…")
    words = load_word_corpus(source)
    index = WordIndex.build(words)
    log_with_time(f"✅ {len(index)} words")
    return ChainValidator(index)


def cmd_generate(args, validator):
    rng = random.Random(args.seed) if args.seed is not None else None
    generator = PuzzleGenerator(
        validator,
        rng=rng,
        max_depth=args.max_depth,
        max_valid_paths=args.max_paths,
    )
    puzzle_date = args.date or date_cls.today().isoformat()
    try:
        puzzle = generator.generate_daily_puzzle(puzzle_date, start_word=args.start_word, timeout=args.timeout)
    except PuzzleGenerationError as e:
        log_with_time(f"Could not generate a puzzle for {puzzle_date}: {e}", color=Fore.RED)
        return 1
    if not generator.validate_puzzle(puzzle):
        log_with_time(f"Generated puzzle for {puzzle_date} failed re-validation", color=Fore.RED)
        return 1
    if args.print_json:
        print(json.dumps(puzzle.to_dict(), indent=2))
    save_puzzle(puzzle, args.puzzles_dir)
    return 0


def cmd_check(args, validator):
    error = validator.validate_chain(args.words)
    if error is not None:
        log_with_time(f"Invalid chain: {error}", color=Fore.RED)
        return 1
    log_with_time(f"Valid chain of {len(args.words)} words", color=Fore.GREEN)
    last = args.words[-1]
    if validator.is_terminal_word(last):
        log_with_time(f"'{last.lower()}' is a terminal word, the chain cannot continue", color=Fore.YELLOW)
    return 0


def cmd_next(args, validator):
    word = args.word
    if not validator.index.is_valid_word(word):
        log_with_time(f"'{word}' is not in the dictionary", color=Fore.RED)
        return 1
    next_words = validator.find_possible_next_words(word)
    if not next_words:
        log_with_time(f"'{word.lower()}' is a terminal word", color=Fore.YELLOW)
        return 0
    shown = next_words[:args.limit]
    if args.mask:
        shown = [mask_word(w) for w in shown]
    log_with_time(f"{len(next_words)} possible next word(s):", color=Fore.GREEN)
    print(", ".join(shown))
    return 0


def cmd_verify(args, validator):
    try:
        puzzle = load_puzzle(args.puzzle, args.puzzles_dir)
    except FileNotFoundError as e:
        log_with_time(f"Could not find puzzle file: {e}", color=Fore.RED)
        return 1
    except (json.JSONDecodeError, KeyError, ValueError) as e:
        log_with_time(f"Error loading puzzle file: {e}", color=Fore.RED)
        return 1
    generator = PuzzleGenerator(validator, max_depth=args.max_depth)
    if generator.validate_puzzle(puzzle):
        log_with_time(f"Puzzle {puzzle.date} ({puzzle.start_word} -> {puzzle.target_word}) is solvable", color=Fore.GREEN)
        return 0
    log_with_time(f"Puzzle {puzzle.date} is no longer solvable", color=Fore.RED)
    return 1


def build_parser():
    parser = argparse.ArgumentParser(description="Word-chain puzzle engine")
    parser.add_argument("--corpus", type=str, default=DICT_URL, help="Word list file or URL (default: dwyl english-words)")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate and store a daily puzzle")
    gen.add_argument("--date", type=str, default=None, help="Puzzle date as YYYY-MM-DD (default: today)")
    gen.add_argument("--seed", type=int, default=None, help="Random seed for start word sampling")
    gen.add_argument("--start-word", type=str, default=None, help="Force the start word instead of sampling one")
    gen.add_argument("--timeout", type=float, default=None, help="Wall-clock budget in seconds for the search")
    gen.add_argument("--max-depth", type=int, default=PuzzleGenerator.MAX_DEPTH, help="Maximum moves per path (default: 8)")
    gen.add_argument("--max-paths", type=int, default=PuzzleGenerator.MAX_VALID_PATHS, help="Paths to collect per target (default: 5)")
    gen.add_argument("--puzzles-dir", type=str, default=PUZZLES_DIR, help="Directory for puzzle JSON files")
    gen.add_argument("--print-json", action="store_true", help="Also print the puzzle JSON to stdout")
    gen.set_defaults(func=cmd_generate)

    chk = sub.add_parser("check", help="Validate a chain of words")
    chk.add_argument("words", nargs="+")
    chk.set_defaults(func=cmd_check)

    nxt = sub.add_parser("next", help="List the words that can follow a word")
    nxt.add_argument("word")
    nxt.add_argument("--limit", type=int, default=20, help="Maximum words to show (default: 20)")
    nxt.add_argument("--mask", action="store_true", help="Only reveal the first three letters")
    nxt.set_defaults(func=cmd_next)

    ver = sub.add_parser("verify", help="Check a stored puzzle is still solvable")
    ver.add_argument("--puzzle", type=str, default=None, help="Puzzle JSON file (default: latest in --puzzles-dir)")
    ver.add_argument("--puzzles-dir", type=str, default=PUZZLES_DIR)
    ver.add_argument("--max-depth", type=int, default=PuzzleGenerator.MAX_DEPTH)
    ver.set_defaults(func=cmd_verify)
    return parser


def run_cli(argv=None):
    args = build_parser().parse_args(argv)
    utils.start_time = time.time()
    utils.VERBOSE = args.verbose
    try:
        validator = build_validator(args.corpus)
    except FileNotFoundError as e:
        log_with_time(f"Could not find word list: {e}", color=Fore.RED)
        return 1
    except requests.RequestException as e:
        log_with_time(f"Error downloading word list: {e}", color=Fore.RED)
        return 1
    return args.func(args, validator)
