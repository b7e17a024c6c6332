"""
Board positions and the move rules the navigator plays them with.

StrictRules goes through python-chess, so only legal moves get in.
FreePlacementRules (training mode) lets any piece go anywhere, the way a
coach pushes pieces around a demo board. Moves chess allows still play out
in full there (castling moves the rook, en passant removes the pawn) and
keep their SAN; everything else is a bare relocation written as
coordinates.

Both answer illegal input with None rather than an exception.
"""

import re
from dataclasses import dataclass
from typing import Optional

import chess

from pgntrainer import fen

PROMOTION_PIECES = {"q": chess.QUEEN, "r": chess.ROOK, "b": chess.BISHOP, "n": chess.KNIGHT}

COORDINATE_RE = re.compile(r"^([a-h][1-8])[-x]([a-h][1-8])(?:=?([QRBNqrbn]))?$")


@dataclass
class MoveResult:
    san: str  # SAN, or coordinates for free placement
    from_square: str
    to_square: str
    piece: str
    captured: Optional[str] = None
    promotion: Optional[str] = None
    fen: str = ""


def _piece_code(piece: Optional[chess.Piece]) -> Optional[str]:
    if piece is None:
        return None
    return ("w" if piece.color == chess.WHITE else "b") + piece.symbol().upper()


def coordinate_notation(board: chess.Board, move: chess.Move) -> str:
    """ "e2-e4", "d1xd8", "a7-a8=Q" """
    captured = board.piece_at(move.to_square) is not None
    text = f"{chess.square_name(move.from_square)}{'x' if captured else '-'}"
    text += chess.square_name(move.to_square)
    if move.promotion:
        text += "=" + chess.piece_symbol(move.promotion).upper()
    return text


def _relocate(board: chess.Board, move: chess.Move):
    piece = board.remove_piece_at(move.from_square)
    if move.promotion:
        piece = chess.Piece(move.promotion, piece.color)
    board.set_piece_at(move.to_square, piece)

    if board.turn == chess.BLACK:
        board.fullmove_number += 1
    board.turn = not board.turn
    board.ep_square = None
    board.castling_rights = board.clean_castling_rights()


def play(board: chess.Board, move: chess.Move) -> str:
    """
    Make `move` on `board` for whoever owns the piece and return how it is
    written. SAN if it is a legal move for the side to move; coordinates if
    the piece moved out of turn or chess forbids the move.
    """
    if not move:
        board.push(move)
        return "--"

    piece = board.piece_at(move.from_square)
    in_turn = piece is None or piece.color == board.turn
    if not in_turn:
        board.turn = piece.color
        board.ep_square = None

    if board.is_legal(move):
        notation = board.san(move) if in_turn else coordinate_notation(board, move)
        board.push(move)
        return notation

    notation = coordinate_notation(board, move)
    _relocate(board, move)
    return notation


class _BoardPosition:
    def __init__(self, board: chess.Board):
        self._board = board

    def fen(self) -> str:
        return self._board.fen()

    def turn(self) -> str:
        return "w" if self._board.turn == chess.WHITE else "b"

    def get(self, square: str) -> Optional[str]:
        try:
            return _piece_code(self._board.piece_at(chess.parse_square(square)))
        except ValueError:
            return None

    def squares(self) -> dict[str, str]:
        return fen.decode(self.fen())

    def board(self) -> list[list[Optional[str]]]:
        return [[self.get(f"{f}{r}") for f in fen.FILES] for r in fen.RANKS]

    def copy(self):
        return type(self)(self._board.copy(stack=False))

    def _move_for(self, from_square, to_square, promotion=None) -> Optional[chess.Move]:
        if not (fen.is_square(from_square) and fen.is_square(to_square)):
            return None
        origin = chess.parse_square(from_square)
        target = chess.parse_square(to_square)
        piece = self._board.piece_at(origin)
        if piece is None or origin == target:
            return None

        promotion_type = None
        if piece.piece_type == chess.PAWN and chess.square_rank(target) in (0, 7):
            promotion_type = PROMOTION_PIECES.get((promotion or "q").lower())
        return chess.Move(origin, target, promotion=promotion_type)

    def _play(self, move: chess.Move) -> MoveResult:
        board = self._board
        moving = board.piece_at(move.from_square) if move else None
        captured = board.piece_at(move.to_square) if move else None
        if (
            captured is None
            and moving is not None
            and moving.color == board.turn
            and board.is_en_passant(move)
        ):
            captured = chess.Piece(chess.PAWN, not moving.color)

        notation = play(board, move)
        return MoveResult(
            san=notation,
            from_square=chess.square_name(move.from_square),
            to_square=chess.square_name(move.to_square),
            piece=_piece_code(moving),
            captured=_piece_code(captured),
            promotion=chess.piece_symbol(move.promotion) if move.promotion else None,
            fen=board.fen(),
        )


class StrictPosition(_BoardPosition):
    def is_game_over(self) -> bool:
        return self._board.is_game_over()

    def legal_targets(self, square) -> list[str]:
        if not fen.is_square(square):
            return []
        origin = chess.parse_square(square)
        targets = []
        for move in self._board.legal_moves:
            name = chess.square_name(move.to_square)
            if move.from_square == origin and name not in targets:
                targets.append(name)
        return targets

    def move(self, from_square, to_square, promotion=None) -> Optional[MoveResult]:
        move = self._move_for(from_square, to_square, promotion)
        if move is None or not self._board.is_legal(move):
            return None
        return self._play(move)

    def move_san(self, san: str) -> Optional[MoveResult]:
        try:
            move = self._board.parse_san(san)
        except ValueError:
            return None
        return self._play(move)


class FreePosition(_BoardPosition):
    def is_game_over(self) -> bool:
        return False

    def legal_targets(self, square) -> list[str]:
        if self.get(square) is None:
            return []
        return [f"{f}{r}" for r in fen.RANKS for f in fen.FILES if f"{f}{r}" != square]

    def move(self, from_square, to_square, promotion=None) -> Optional[MoveResult]:
        move = self._move_for(from_square, to_square, promotion)
        if move is None:
            return None
        pawn = self._board.piece_type_at(move.from_square) == chess.PAWN
        if pawn and move.promotion is None and chess.square_rank(move.to_square) in (0, 7):
            move = chess.Move(move.from_square, move.to_square, promotion=chess.QUEEN)
        return self._play(move)

    def move_san(self, san: str) -> Optional[MoveResult]:
        """Coordinates apply directly; SAN is read for the side to move."""
        if m := COORDINATE_RE.match(san or ""):
            return self.move(m.group(1), m.group(2), m.group(3))
        try:
            move = self._board.parse_san(san)
        except ValueError:
            return None
        return self._play(move)


class StrictRules:
    name = "strict"

    def new_position(self, fen_string=None) -> StrictPosition:
        try:
            board = chess.Board(fen.pad_fen(fen_string))
        except ValueError as exc:
            raise fen.InvalidFenError(str(exc)) from exc
        return StrictPosition(board)

    def validate_move(self, position, from_square, to_square, promotion=None):
        return position.copy().move(from_square, to_square, promotion)

    def legal_targets(self, position, square) -> list[str]:
        return position.legal_targets(square)

    def apply(self, position, record) -> Optional[MoveResult]:
        return position.move_san(record.san)

    def is_complete(self, position) -> bool:
        return position.is_game_over()


class FreePlacementRules:
    name = "free"

    def new_position(self, fen_string=None) -> FreePosition:
        padded = fen.pad_fen(fen_string)
        fen.decode(padded)
        try:
            board = chess.Board(padded)
        except ValueError as exc:
            raise fen.InvalidFenError(str(exc)) from exc
        return FreePosition(board)

    def validate_move(self, position, from_square, to_square, promotion=None):
        return position.copy().move(from_square, to_square, promotion)

    def legal_targets(self, position, square) -> list[str]:
        return position.legal_targets(square)

    def apply(self, position, record) -> Optional[MoveResult]:
        if record.from_square and record.to_square:
            return position.move(record.from_square, record.to_square, record.promotion)
        return position.move_san(record.san)

    def is_complete(self, position) -> bool:
        return False


def rules_for(tree):
    return FreePlacementRules() if tree.training_mode else StrictRules()
