import re

FILES = "abcdefgh"
RANKS = "87654321"
PIECE_LETTERS = "PNBRQK"

START_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

# active color, castling, en passant, halfmove clock, fullmove number
DEFAULT_FIELDS = ("w", "-", "-", "0", "1")

_SQUARE_RE = re.compile(r"^[a-h][1-8]$")


class InvalidFenError(ValueError):
    pass


def is_square(value) -> bool:
    return isinstance(value, str) and bool(_SQUARE_RE.match(value))


def placement(fen: str) -> str:
    fields = (fen or "").split()
    return fields[0] if fields else ""


def decode(fen: str) -> dict[str, str]:
    """
    Piece placement ➤ {"e1": "wK", "e8": "bK", ...}

    Only the first FEN field is read, so a bare placement works too.
    """
    board = placement(fen)
    if not board:
        raise InvalidFenError("Empty FEN")

    ranks = board.split("/")
    if len(ranks) != 8:
        raise InvalidFenError(f"Expected 8 ranks, got {len(ranks)}: {board}")

    position = {}
    for rank, row in zip(RANKS, ranks):
        file_index = 0
        for char in row:
            if char in "12345678":
                file_index += int(char)
            elif char.upper() in PIECE_LETTERS:
                if file_index < 8:
                    color = "w" if char.isupper() else "b"
                    position[f"{FILES[file_index]}{rank}"] = color + char.upper()
                file_index += 1
            else:
                raise InvalidFenError(f"Unexpected {char!r} in rank {rank}: {row}")

        if file_index != 8:
            raise InvalidFenError(
                f"Rank {rank} has {file_index} squares, expected 8: {row}"
            )

    return position


def encode(
    position,
    turn="w",
    castling="-",
    en_passant="-",
    halfmove=0,
    fullmove=1,
) -> str:
    rows = []
    for rank in RANKS:
        row = ""
        empty = 0
        for file in FILES:
            piece = position.get(f"{file}{rank}")
            if not piece:
                empty += 1
                continue
            if empty:
                row += str(empty)
                empty = 0
            color, piece_type = piece[0], piece[1]
            row += piece_type.upper() if color == "w" else piece_type.lower()
        if empty:
            row += str(empty)
        rows.append(row)

    fields = [
        "/".join(rows),
        turn or DEFAULT_FIELDS[0],
        castling or DEFAULT_FIELDS[1],
        en_passant or DEFAULT_FIELDS[2],
        str(halfmove),
        str(fullmove),
    ]
    return " ".join(fields)


def pad_fen(fen: str) -> str:
    """
    Fill in missing trailing fields, e.g. a pasted placement-only FEN.
    Blank input gives the standard starting position.
    """
    fields = (fen or "").split()
    if not fields:
        return START_FEN
    fields = fields[:6]
    fields += DEFAULT_FIELDS[len(fields) - 1 :]  # noqa: E203
    return " ".join(fields)


def side_to_move(fen: str) -> str:
    fields = (fen or "").split()
    if len(fields) > 1 and fields[1] in ("w", "b"):
        return fields[1]
    return "w"


def fullmove_number(fen: str) -> int:
    fields = (fen or "").split()
    try:
        number = int(fields[5])
    except (IndexError, ValueError):
        return 1
    return number if number > 0 else 1
