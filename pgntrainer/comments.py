"""
Free-text annotation handling for raw PGN.

Initial (game-level) comments are the brace comments that appear before
the first move token. Everything here works on the raw text so it still
gives something useful when the grammar parser rejects the game.
"""

import logging
import re

from pgntrainer.util import app_setting

logger = logging.getLogger(__name__)

HEADER_LINE_RE = re.compile(r"^[ \t]*\[[A-Za-z0-9_]+\s+\"[^\"]*\"\][ \t]*$", re.M)
COMMENT_RE = re.compile(r"\{([^}]*)\}")

MOVE_TOKEN_RE = re.compile(
    r"""(?x)
    (?<![\w.\-])
    (?:\d+\s*\.+\s*)?                           # optional move number and dots
    (?:
        [NBRQK]?[a-h]?[1-8]?x?[a-h][1-8]        # piece, disambiguation, capture
        (?:=?[NBRQ])?                           # promotion
        |
        O-O(?:-O)?                              # castles
    )
    [+#]?                                       # check/mate
    (?![\w\-])
    """
)

# PGN directives like [%csl ...] and [%cal ...], also [%clk ...], [%eval ...]
DIRECTIVE_RE = re.compile(r"\[%([a-zA-Z]+)\s+([^\]]*)\]")

BRUSHES = {"G": "green", "R": "red", "B": "blue", "Y": "yellow"}
_SQUARE_RE = re.compile(r"^[a-h][1-8]$")
_ARROW_RE = re.compile(r"^[a-h][1-8][a-h][1-8]$")

YEAR_RE = re.compile(r"\b(16|17|18|19|20)\d{2}\b")
PARENTHESIZED_YEAR_RE = re.compile(r"\([^)]*\d{4}[^)]*\)")

GAME_COMMENT_MIN_LENGTH = 100
GAME_COMMENT_KEYWORDS = ("World Championship", "Champion", "tournament", "match", "game")
MOVE_COMMENT_KEYWORDS = ("move", "plays", "captures", "attacks", "defends", "threatens")


def strip_headers(text: str) -> str:
    return HEADER_LINE_RE.sub("", text).strip()


def brace_comments(text: str) -> list[str]:
    comments = []
    for match in COMMENT_RE.finditer(text):
        comment = match.group(1).strip()
        if comment:
            comments.append(comment)
    return comments


def find_first_move(text: str):
    """First move token that is not inside a {comment}, or None."""
    comment_spans = [m.span() for m in COMMENT_RE.finditer(text)]
    for match in MOVE_TOKEN_RE.finditer(text):
        start = match.start()
        if any(lo <= start < hi for lo, hi in comment_spans):
            continue
        return match
    return None


def has_move_tokens(text: str) -> bool:
    return find_first_move(strip_headers(text or "")) is not None


def extract_initial_comments(text: str) -> list[str]:
    try:
        body = strip_headers(text)
        first_move = find_first_move(body)
        zone = body[: first_move.start()] if first_move else body
        return brace_comments(zone)
    except (TypeError, re.error) as exc:
        logger.warning("Initial comment extraction failed, using all text: %s", exc)
        return brace_comments(text or "")


def extract_all_comments(text: str) -> list[str]:
    return brace_comments(strip_headers(text or ""))


def looks_game_level(text: str) -> bool:
    """
    Guess whether a comment describes the game (players, event, history)
    rather than a move. This is a heuristic; the thresholds and word lists
    are settings so they can be tuned without touching the tree builder.
    """
    text = (text or "").strip()
    if not text:
        return False

    min_length = app_setting(
        "PGNTRAINER_GAME_COMMENT_MIN_LENGTH", GAME_COMMENT_MIN_LENGTH
    )
    game_words = app_setting("PGNTRAINER_GAME_COMMENT_KEYWORDS", GAME_COMMENT_KEYWORDS)
    move_words = app_setting("PGNTRAINER_MOVE_COMMENT_KEYWORDS", MOVE_COMMENT_KEYWORDS)

    if len(text) > min_length:
        return True
    if YEAR_RE.search(text) or PARENTHESIZED_YEAR_RE.search(text):
        return True
    if _mentions_any(text, game_words):
        return True
    return not _mentions_any(text, move_words)


def _mentions_any(text, words) -> bool:
    if not words:
        return False
    pattern = r"\b(" + "|".join(re.escape(w) for w in words) + r")\b"
    return re.search(pattern, text, re.IGNORECASE) is not None


def extract_game_comments(text: str, first_move_comment=None) -> list[str]:
    comments = extract_initial_comments(text)
    if first_move_comment and looks_game_level(first_move_comment):
        comments.append(first_move_comment.strip())

    unique = []
    seen = set()
    for comment in comments:
        key = comment.strip().lower()
        if key and key not in seen:
            seen.add(key)
            unique.append(comment.strip())
    return unique


def extract_shapes(text: str) -> tuple[str, list[dict]]:
    """
    Pull Lichess/ChessBase drawing directives out of a comment:
      - [%csl Rf3,Yd4]   => circles
      - [%cal Gg4f3]     => arrows (same-square arrows become circles)
    Every other directive (clk, eval, ...) is dropped from the text.
    """
    if not text:
        return "", []

    shapes: list[dict] = []

    def add(brush_letter, orig, dest=None):
        brush = BRUSHES.get(brush_letter)
        if not brush:
            return
        shape = {"orig": orig, "brush": brush}
        if dest and dest != orig:
            shape = {"orig": orig, "dest": dest, "brush": brush}
        if shape not in shapes:
            shapes.append(shape)

    for match in DIRECTIVE_RE.finditer(text):
        key = match.group(1).lower()
        for token in re.split(r"[\s,]+", (match.group(2) or "").strip()):
            if not token:
                continue
            if key == "csl" and _SQUARE_RE.match(token[1:]):
                add(token[0], token[1:])
            elif key == "cal" and _ARROW_RE.match(token[1:]):
                add(token[0], token[1:3], token[3:])

    cleaned = DIRECTIVE_RE.sub("", text)
    if cleaned != text:
        cleaned = re.sub(r"[ \t]+", " ", cleaned).strip()

    return cleaned, shapes
