"""
Game records in Portable Game Notation (PGN)
---

[Event "Casual Game"]
[Site "?"]
[Date "2026.10.19"]
[Round "1"]
[White "Player"]
[Black "Coach"]
[Result "*"]

1. e4 e5 2. Nf3 *

The tag section is followed by a blank line and the moves in SAN. Games that did not start from the standard position
carry two extra tags: [SetUp "1"] and [FEN "..."].
"""

import re
import textwrap
from dataclasses import dataclass, field
from datetime import date

from src.chess.fen import STARTING_FEN
from src.chess.game import Game
from src.chess.pieces import Color
from src.core.exceptions import InvalidPGNError
from src.core.shared_types import Status

LINE_WIDTH = 80
UNKNOWN_RESULT = "*"
RESULTS = ("1-0", "0-1", "1/2-1/2", UNKNOWN_RESULT)

TAG_PATTERN = re.compile(r'^\[(\w+)\s+"((?:[^"\\]|\\.)*)"\]$')
MOVE_NUMBER_PATTERN = re.compile(r"^\d+\.+$")


@dataclass
class GameTags:
    """The seven tag roster. Anything else goes into `extra`."""

    event: str = "Casual Game"
    site: str = "?"
    date: str = field(default_factory=lambda: date.today().strftime("%Y.%m.%d"))
    round: str = "1"
    white: str = "?"
    black: str = "?"
    extra: dict[str, str] = field(default_factory=dict)


def game_result(game: Game) -> str:
    """Result token of the game: only finished games get a score"""
    if game.status == Status.IN_PROGRESS:
        return UNKNOWN_RESULT
    if game.status == Status.CHECKMATE:
        return "1-0" if game.winner == Color.WHITE else "0-1"
    return "1/2-1/2"


def export_pgn(game: Game, tags: GameTags | None = None) -> str:
    """Write the game as a PGN text"""
    tags = tags or GameTags(
        white=game.players.get(Color.WHITE, "?"),
        black=game.players.get(Color.BLACK, "?"),
    )
    result = game_result(game)

    tag_pairs: list[tuple[str, str]] = [
        ("Event", tags.event),
        ("Site", tags.site),
        ("Date", tags.date),
        ("Round", tags.round),
        ("White", tags.white),
        ("Black", tags.black),
        ("Result", result),
    ]
    starting_fen = game.initial_position.to_fen()
    if starting_fen != STARTING_FEN:
        tag_pairs.extend([("SetUp", "1"), ("FEN", starting_fen)])
    tag_pairs.extend(tags.extra.items())

    tag_section = "\n".join(f'[{name} "{_escape(value)}"]' for name, value in tag_pairs)
    movetext = textwrap.fill(
        " ".join(_movetext_tokens(game) + [result]),
        width=LINE_WIDTH,
        break_on_hyphens=False,
    )
    return f"{tag_section}\n\n{movetext}\n"


def _movetext_tokens(game: Game) -> list[str]:
    """Numbered SAN tokens. A game starting with black to move opens with '1...'"""
    state = game.initial_position.state
    move_number = state.num_turns
    color = state.color_to_move

    tokens: list[str] = []
    for idx, record in enumerate(game.history):
        if color == Color.WHITE:
            tokens.append(f"{move_number}.")
        elif idx == 0:
            tokens.append(f"{move_number}...")
        tokens.append(record.san)
        if color == Color.BLACK:
            move_number += 1
        color = color.opponent
    return tokens


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _unescape(value: str) -> str:
    return re.sub(r"\\(.)", r"\1", value)


def parse_pgn(text: str) -> tuple[dict[str, str], list[str]]:
    """
    Split a (single game) PGN text into its tags and its moves in SAN
    ---

    Comments ({...} and ; until end of line), variations (...), numeric annotation glyphs ($1), move numbers and the
    result token are dropped.
    """
    tags: dict[str, str] = {}
    movetext_lines: list[str] = []
    for line in text.strip().splitlines():
        stripped = line.strip()
        if stripped.startswith("["):
            match = TAG_PATTERN.match(stripped)
            if match is None:
                raise InvalidPGNError(f"Cannot read tag line: {stripped!r}")
            tags[match.group(1)] = _unescape(match.group(2))
        elif stripped.startswith("%"):
            # escape mechanism: the rest of the line is ignored
            continue
        else:
            movetext_lines.append(line.split(";", 1)[0])

    movetext = " ".join(movetext_lines)
    movetext = re.sub(r"\{[^}]*\}", " ", movetext)
    movetext = _strip_variations(movetext)
    # "1.e4" is allowed without a space
    movetext = re.sub(r"(\d+\.+)", r" \1 ", movetext)

    sans: list[str] = []
    for token in movetext.split():
        if MOVE_NUMBER_PATTERN.match(token) or token.startswith("$") or token in RESULTS:
            continue
        sans.append(token)
    return tags, sans


def _strip_variations(movetext: str) -> str:
    """Remove (possibly nested) parenthesized variations"""
    depth = 0
    kept: list[str] = []
    for character in movetext:
        if character == "(":
            depth += 1
        elif character == ")":
            if depth == 0:
                raise InvalidPGNError("Unbalanced ')' in movetext.")
            depth -= 1
        elif depth == 0:
            kept.append(character)
    if depth != 0:
        raise InvalidPGNError("Unbalanced '(' in movetext.")
    return "".join(kept)
