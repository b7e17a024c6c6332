import logging
from dataclasses import dataclass, field
from typing import Optional

import chess

from pgntrainer import comments, fen, pgn_parser
from pgntrainer.pgn_parser import is_training_mode
from pgntrainer.tree import GameNode, MoveRecord, ply_for

logger = logging.getLogger(__name__)


@dataclass
class GameTree:
    """Everything loaded from one PGN record. Rebuilt, never patched."""

    root: GameNode
    headers: dict[str, str] = field(default_factory=dict)
    starting_fen: str = fen.START_FEN
    training_mode: bool = False
    game_comments: list[str] = field(default_factory=list)
    parse_errors: list[str] = field(default_factory=list)

    @property
    def title(self) -> str:
        title = self.headers.get("Event", "").strip()
        return "" if title == "?" else title


def _move_comment(token) -> tuple[Optional[str], list[dict]]:
    texts = []
    shapes = []
    for raw in token.comments:
        text, found = comments.extract_shapes(raw)
        shapes.extend(shape for shape in found if shape not in shapes)
        if text.strip():
            texts.append(text.strip())
    return ("\n".join(texts) if texts else None), shapes


def build(
    move_tokens,
    parent_node: GameNode,
    start_move_number: int = 1,
    start_is_black_to_move: bool = False,
):
    """
    Grow `parent_node`'s subtree from parsed move tokens.

    Each token becomes the mainline child of the cursor. Its variations
    replace it, so they hang off the same cursor (the position *before*
    the token), not off the new child.
    """
    cursor = parent_node
    move_number = start_move_number
    black_to_move = start_is_black_to_move

    for token in move_tokens:
        comment, shapes = _move_comment(token)
        record = MoveRecord(
            san=token.san,
            comment=comment,
            is_black_move=black_to_move,
            move_number=move_number,
            ply=ply_for(move_number, black_to_move),
            nags=list(token.nags),
            shapes=shapes,
        )
        child = cursor.add_child(record)

        for variation in token.variations:
            build(variation, cursor, move_number, black_to_move)

        cursor = child
        if black_to_move:
            move_number += 1
        black_to_move = not black_to_move


def starting_fen_from_headers(headers) -> str:
    raw = headers.get("FEN", "").strip()
    if not raw:
        return fen.START_FEN

    padded = fen.pad_fen(raw)
    try:
        fen.decode(padded)
        chess.Board(padded)
    except ValueError as exc:
        logger.warning("Ignoring invalid FEN tag %r: %s", raw, exc)
        return fen.START_FEN
    return padded


def load_game_tree(pgn_text: str) -> GameTree:
    """
    Raw PGN ➤ GameTree. Only the first game is used. Malformed input still
    gives a tree: no moves, and whatever comments could be found on the root.
    """
    pgn_text = pgn_text or ""
    root = GameNode()

    initial_comments = comments.extract_initial_comments(pgn_text)
    if initial_comments:
        root.initial_comments = "\n\n".join(initial_comments)
        root.initial_comment_blocks = list(initial_comments)

    records = pgn_parser.parse(pgn_text)
    if not records:
        headers = pgn_parser.read_headers(pgn_text)
        if comments.has_move_tokens(pgn_text):
            logger.warning("PGN has moves but none could be parsed")
        logger.info("No games parsed; showing %d comment(s)", len(initial_comments))
        return GameTree(
            root=root,
            headers=headers,
            starting_fen=starting_fen_from_headers(headers),
            training_mode=is_training_mode(headers),
            game_comments=initial_comments,
        )

    record = records[0]
    if len(records) > 1:
        logger.info("PGN holds %d games; loading the first", len(records))

    starting_fen = starting_fen_from_headers(record.headers)
    build(
        record.moves,
        root,
        start_move_number=fen.fullmove_number(starting_fen),
        start_is_black_to_move=fen.side_to_move(starting_fen) == "b",
    )

    first_comment = None
    if root.children and root.children[0].move.comment:
        first_comment = root.children[0].move.comment

    return GameTree(
        root=root,
        headers=record.headers,
        starting_fen=starting_fen,
        training_mode=is_training_mode(record.headers),
        game_comments=comments.extract_game_comments(pgn_text, first_comment),
        parse_errors=record.errors,
    )
