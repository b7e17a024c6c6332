"""
Adapter around the python-chess PGN reader.

python-chess gives us a node tree; the rest of the app wants plain move
tokens, each optionally carrying comments and the alternative lines that
replace it:

    1.e4 e5 (1...c5 2.Nf3) 2.Nf3

    [e4, e5(variations=[[c5, Nf3]]), Nf3]
"""

import logging
import re
from dataclasses import dataclass, field
from io import StringIO

import chess
import chess.pgn

from pgntrainer.rules import COORDINATE_RE, play

logger = logging.getLogger(__name__)

TAG_PAIR_RE = re.compile(r"^\s*\[([A-Za-z0-9_]+)\s+\"((?:[^\"\\]|\\.)*)\"\]", re.M)


class PgnParseError(ValueError):
    pass


@dataclass
class MoveToken:
    san: str
    comments: list[str] = field(default_factory=list)
    nags: list[int] = field(default_factory=list)
    variations: list[list["MoveToken"]] = field(default_factory=list)


@dataclass
class GameRecord:
    headers: dict[str, str] = field(default_factory=dict)
    moves: list[MoveToken] = field(default_factory=list)
    comment: str = ""  # comment before the first move
    errors: list[str] = field(default_factory=list)
    starting_fen: str = chess.STARTING_FEN


def is_training_mode(headers) -> bool:
    return (
        headers.get("TrainingMode", "").strip() == "1"
        or headers.get("ComponentMode", "").strip().lower() == "training"
    )


class FreePlacementGameBuilder(chess.pgn.GameBuilder):
    """
    Training games store board edits as coordinates ("e7-e1", "d1xd8").
    Those are usually not legal chess, so for games with a training header
    they go in as plain from/to moves instead of being rejected.
    """

    def parse_san(self, board, san):
        match = COORDINATE_RE.match(san)
        if not match or not is_training_mode(self.game.headers):
            return super().parse_san(board, san)

        origin = chess.parse_square(match.group(1))
        target = chess.parse_square(match.group(2))
        piece = board.piece_at(origin)
        if piece is None:
            raise ValueError(f"no piece on {match.group(1)} for {san}")

        promotion = None
        if piece.piece_type == chess.PAWN and chess.square_rank(target) in (0, 7):
            promotion = chess.Piece.from_symbol((match.group(3) or "q").lower()).piece_type
        if piece.color != board.turn:
            # whoever owns the piece moves it
            board.turn = piece.color
            board.ep_square = None
        return chess.Move(origin, target, promotion=promotion)


def parse(pgn_text: str) -> list[GameRecord]:
    """
    Every game in the text, in order. Never raises: a grammar failure is
    logged and comes back as "no games", leaving comment extraction to
    whatever raw-text fallback the caller has.
    """
    try:
        return _read_records(pgn_text)
    except PgnParseError as exc:
        logger.warning("PGN could not be parsed: %s", exc)
        return []


def _read_records(pgn_text):
    if not isinstance(pgn_text, str):
        raise PgnParseError(f"Expected PGN text, got {type(pgn_text).__name__}")

    handle = StringIO(pgn_text)
    records = []
    while True:
        try:
            game = chess.pgn.read_game(handle, Visitor=FreePlacementGameBuilder)
        except (ValueError, IndexError, KeyError, AssertionError) as exc:
            raise PgnParseError(str(exc)) from exc

        if game is None:
            break
        records.append(_record_from_game(game))

    return records


def _record_from_game(game: chess.pgn.Game) -> GameRecord:
    errors = [str(error) for error in game.errors]
    for error in errors:
        logger.warning("PGN error in %r: %s", game.headers.get("Event", "?"), error)

    try:
        board = game.board()
    except ValueError as exc:
        # bad [FEN] tag: python-chess already skipped the movetext
        logger.warning("Unusable starting position: %s", exc)
        return GameRecord(
            headers=dict(game.headers),
            comment=(game.comment or "").strip(),
            errors=errors or [str(exc)],
        )

    return GameRecord(
        headers=dict(game.headers),
        moves=_tokens_after(game, board.copy(stack=False)),
        comment=(game.comment or "").strip(),
        errors=errors,
        starting_fen=board.fen(),
    )


def _token_for(node: chess.pgn.ChildNode, board: chess.Board):
    """Plays the node's move on `board`."""
    comments = []
    for text in (node.starting_comment, node.comment):
        if text and text.strip():
            comments.append(text.strip())

    return MoveToken(
        san=play(board, node.move),
        comments=comments,
        nags=sorted(node.nags),
    )


def _tokens_after(node: chess.pgn.GameNode, board: chess.Board):
    """
    Follow the mainline below `node`. Sibling lines at each position become
    the variations of the mainline token they stand in for.
    """
    tokens = []
    while node.variations:
        main = node.variations[0]
        variations = [
            _line(alternative, board.copy(stack=False))
            for alternative in node.variations[1:]
        ]
        token = _token_for(main, board)
        token.variations = variations
        tokens.append(token)
        node = main

    return tokens


def _line(start: chess.pgn.ChildNode, board: chess.Board):
    token = _token_for(start, board)
    return [token] + _tokens_after(start, board)


def split_games(pgn_text: str) -> list[str]:
    """
    Raw text of each game in a multi-game file. Useful for storing each
    game verbatim, comments and all.
    """
    handle = StringIO(pgn_text)
    offsets = []
    while True:
        offset = handle.tell()
        if chess.pgn.read_headers(handle) is None:
            break
        offsets.append(offset)

    games = []
    for start, end in zip(offsets, offsets[1:] + [len(pgn_text)]):
        chunk = pgn_text[start:end].strip()
        if chunk:
            games.append(chunk)
    return games


def read_headers(pgn_text: str) -> dict[str, str]:
    """Tag pairs by regex; works on text the parser gives up on."""
    headers = {}
    for match in TAG_PAIR_RE.finditer(pgn_text or ""):
        key, value = match.group(1), match.group(2)
        headers.setdefault(key, value.replace('\\"', '"'))
    return headers
