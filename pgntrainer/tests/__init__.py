import chess

from pgntrainer import builder
from pgntrainer.navigator import Navigator

SICILIAN_PGN = """[Event "Sicilian sidelines"]
[Site "?"]
[White "Trainer"]
[Black "Student"]
[Result "*"]

{Typical ways to meet 1.e4.} 1. e4 e5 (1... c5 2. Nf3 d6 $1) (1... e6 {French})
2. Nf3 {develops and attacks e5} Nc6 *
"""

TRAINING_PGN = """[Event "Rook endings"]
[TrainingMode "1"]
[SetUp "1"]
[FEN "4k3/8/8/8/8/8/8/R3K3 w - - 0 1"]

*
"""


def make_tree(pgn_text):
    return builder.load_game_tree(pgn_text)


def make_navigator(pgn_text, rules=None):
    return Navigator(make_tree(pgn_text), rules)


def sans(node):
    """SANs of a node's children, in order."""
    return [child.move.san for child in node.children]


def mainline_sans(node):
    return [child.move.san for child in node.mainline()]


def assert_mainline_invariant(root):
    """Exactly the first child of every node counts as mainline."""
    for node in root.walk():
        flags = [child.is_main_line for child in node.children]
        if flags:
            assert flags == [True] + [False] * (len(flags) - 1), node


def fen_after(*san_moves, start=chess.STARTING_FEN):
    board = chess.Board(start)
    for san in san_moves:
        board.push_san(san)
    return board.fen()
