"""
Walking and editing a GameTree.

The navigator only stores *where* it is (a path of child indexes from the
root). The board position is always rebuilt by replaying the moves on that
path, and a replay either finishes or changes nothing.

Branch points are a two-step exchange: advance() offers a VariationChoice,
choose_variation() answers it.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from pgntrainer import builder, fen, util
from pgntrainer.rules import rules_for
from pgntrainer.tree import (
    GameNode,
    MoveRecord,
    format_path,
    is_descendant_path,
    is_same_or_descendant_path,
    ply_for,
)

logger = logging.getLogger(__name__)

# highlight colors by modifier mode (shift, alt, ctrl+alt, ctrl+alt+shift)
HIGHLIGHT_BRUSHES = {
    "green": "rgba(0, 255, 0, 0.7)",
    "purple": "rgba(128, 0, 128, 0.5)",
    "yellow": "rgba(255, 255, 0, 0.5)",
    "red": "rgba(255, 0, 0, 0.7)",
}


class ReplayError(RuntimeError):
    """A stored move no longer applies when rebuilding a position."""

    def __init__(self, path, ply_index, san):
        self.path = list(path)
        self.ply_index = ply_index
        self.san = san
        super().__init__(
            f"Move {ply_index + 1} ({san}) on path {format_path(path) or '-'} "
            "could not be replayed"
        )


@dataclass
class VariationOption:
    index: int
    move: MoveRecord
    is_main_line: bool
    node_count: int
    has_sub_variations: bool
    depth: int


@dataclass
class VariationChoice:
    path: list[int]  # where the choice was offered; options are its children
    options: list[VariationOption] = field(default_factory=list)


def brush_color(mode=None) -> str:
    default = util.app_setting("PGNTRAINER_DEFAULT_BRUSH", "green")
    if mode in HIGHLIGHT_BRUSHES.values():
        return mode
    return HIGHLIGHT_BRUSHES.get(mode or default, HIGHLIGHT_BRUSHES["green"])


class Navigator:
    def __init__(self, tree: builder.GameTree, rules=None):
        self.on_position_changed: Optional[Callable[["Navigator"], None]] = None
        self._reset(tree, rules)

    @classmethod
    def from_pgn(cls, pgn_text: str, rules=None) -> "Navigator":
        return cls(builder.load_game_tree(pgn_text), rules)

    def _reset(self, tree, rules=None):
        self.tree = tree
        self.rules = rules or rules_for(tree)
        self.current_path: list[int] = []
        self.pending_choice: Optional[VariationChoice] = None
        self.selected_square: Optional[str] = None
        self.shapes: list[dict] = []
        self.position = self.rules.new_position(tree.starting_fen)

    def load(self, pgn_text: str, rules=None):
        """A new event: the old tree and everything about it goes away."""
        self._reset(builder.load_game_tree(pgn_text), rules)
        self._notify()

    @property
    def root(self) -> GameNode:
        return self.tree.root

    @property
    def current_node(self) -> GameNode:
        return self.root.get_node_by_path(self.current_path)

    @property
    def moves(self) -> list[MoveRecord]:
        return self.current_node.get_all_moves()

    @property
    def comment(self) -> Optional[str]:
        node = self.current_node
        if node.move is None:
            return node.initial_comments
        return node.move.comment

    @property
    def fen(self) -> str:
        return self.position.fen()

    @property
    def is_complete(self) -> bool:
        return self.rules.is_complete(self.position)

    @property
    def targets(self) -> list[str]:
        """Where the selected piece may go."""
        if self.selected_square is None:
            return []
        return self.rules.legal_targets(self.position, self.selected_square)

    def _notify(self):
        if self.on_position_changed:
            self.on_position_changed(self)

    # navigation

    def replay(self, node: GameNode):
        """Fresh position for `node`, or ReplayError. Never touches self."""
        position = self.rules.new_position(self.tree.starting_fen)
        for ply_index, move in enumerate(node.get_all_moves()):
            if self.rules.apply(position, move) is None:
                error = ReplayError(node.path, ply_index, move.san)
                logger.error("%s (start %s)", error, self.tree.starting_fen)
                raise error
        return position

    def navigate_to(self, path) -> bool:
        path = list(path)
        node = self.root.get_node_by_path(path)
        if node is None:
            logger.info("Path %s does not resolve; staying put", path)
            return False

        self._settle(path, self.replay(node))
        return True

    def _settle(self, path, position):
        self.position = position
        self.current_path = list(path)
        self.pending_choice = None
        self.selected_square = None
        self._notify()

    def advance(self) -> Optional[VariationChoice]:
        if self.pending_choice is not None:
            return self.pending_choice

        node = self.current_node
        if not node.children:
            return None
        if len(node.children) == 1:
            self.navigate_to(self.current_path + [0])
            return None

        self.pending_choice = VariationChoice(
            path=list(self.current_path),
            options=[
                VariationOption(
                    index=index,
                    move=child.move,
                    is_main_line=child.is_main_line,
                    node_count=child.subtree_size(),
                    has_sub_variations=child.has_sub_variations,
                    depth=child.depth,
                )
                for index, child in enumerate(node.children)
            ],
        )
        return self.pending_choice

    def choose_variation(self, index: Optional[int]) -> bool:
        choice = self.pending_choice
        self.pending_choice = None
        if choice is None:
            logger.info("No variation choice pending")
            return False
        if index is None:
            return False
        return self.navigate_to(choice.path + [index])

    def retreat(self) -> bool:
        if self.pending_choice is not None or not self.current_path:
            return False
        return self.navigate_to(self.current_path[:-1])

    def go_to_start(self) -> bool:
        if not self.current_path:
            return False
        return self.navigate_to([])

    def go_to_end(self) -> bool:
        steps = sum(1 for _ in self.current_node.mainline())
        if not steps:
            return False
        return self.navigate_to(self.current_path + [0] * steps)

    # editing

    def _next_move_numbering(self, node: GameNode) -> tuple[int, bool]:
        if node.move is not None:
            number = node.move.move_number + (1 if node.move.is_black_move else 0)
            return number, not node.move.is_black_move
        start = self.tree.starting_fen
        return fen.fullmove_number(start), fen.side_to_move(start) == "b"

    def insert_move(self, from_square, to_square, promotion=None) -> Optional[GameNode]:
        """
        Play a move from the current position. A move that is already a
        child just takes us there; anything new becomes a child (mainline if
        it's the first) and we follow it.
        """
        node = self.current_node
        result = self.rules.validate_move(
            self.position, from_square, to_square, promotion
        )
        if result is None:
            logger.info("Rejected move %s-%s", from_square, to_square)
            return None

        existing = node.find_child(result.san)
        if existing is not None:
            self.navigate_to(self.current_path + [existing])
            return node.children[existing]

        move_number, is_black_move = self._next_move_numbering(node)
        child = node.add_child(
            MoveRecord(
                san=result.san,
                is_black_move=is_black_move,
                move_number=move_number,
                ply=ply_for(move_number, is_black_move),
                from_square=result.from_square,
                to_square=result.to_square,
                piece=result.piece,
                captured=result.captured,
                promotion=result.promotion,
            )
        )
        try:
            self.navigate_to(self.current_path + [len(node.children) - 1])
        except ReplayError:
            node.remove_child(len(node.children) - 1)
            raise
        return child

    def insert_san(self, san: str) -> Optional[GameNode]:
        result = self.position.copy().move_san(san)
        if result is None:
            logger.info("Rejected move %s", san)
            return None
        return self.insert_move(result.from_square, result.to_square, result.promotion)

    def promote(self, path) -> bool:
        path = list(path)
        if not path:
            return False
        parent_path, index = path[:-1], path[-1]
        parent = self.root.get_node_by_path(parent_path)
        if parent is None or not parent.promote_child(index):
            return False

        # option indexes of an open choice no longer match the children
        self.pending_choice = None
        level = len(parent_path)
        current = self.current_path
        if current == path:
            self.navigate_to(parent_path + [0])
        elif is_descendant_path(current, parent_path):
            # same node, new index at this level; the position doesn't change
            old = current[level]
            new = 0 if old == index else (old + 1 if old < index else old)
            self.current_path = current[:level] + [new] + current[level + 1 :]
        return True

    def delete(self, path) -> bool:
        path = list(path)
        if not path:
            return False
        parent_path, index = path[:-1], path[-1]
        parent = self.root.get_node_by_path(parent_path)
        if parent is None or not 0 <= index < len(parent.children):
            return False

        level = len(parent_path)
        current = self.current_path
        relocate = is_same_or_descendant_path(current, path)
        # replay first, so a failure leaves the tree and our path untouched
        position = self.replay(parent) if relocate else None

        parent.remove_child(index)
        self.pending_choice = None
        if relocate:
            self._settle(parent_path, position)
        elif is_descendant_path(current, parent_path) and current[level] > index:
            self.current_path = current[:level] + [current[level] - 1] + current[level + 1 :]
        return True

    # board widget hooks

    def on_piece_drop(self, source, target, piece=None) -> bool:
        promotion = None
        if piece and len(piece) > 2:
            promotion = piece[-1].lower()  # e.g. "wPq"
        return self.insert_move(source, target, promotion) is not None

    def on_square_click(self, square) -> bool:
        """
        Click-to-move: the first click picks up a piece of the side to move,
        the second tries to move it there. Clicking the picked-up square
        again puts it back.
        """
        if square == self.selected_square:
            self.selected_square = None
            return False

        piece = self.position.get(square)
        if self.selected_square is None or (
            piece and piece[0] == self.position.turn()
        ):
            self.selected_square = square if piece else None
            return False

        origin, self.selected_square = self.selected_square, None
        return self.insert_move(origin, square) is not None

    def on_square_right_click(self, square, color=None):
        self.toggle_highlight(square, color)

    def toggle_highlight(self, square, color=None):
        if not fen.is_square(square):
            return
        existing = [s for s in self.shapes if s["orig"] == square and "dest" not in s]
        if existing:
            self.shapes = [s for s in self.shapes if s not in existing]
        else:
            self.shapes.append({"orig": square, "brush": brush_color(color)})

    def toggle_arrow(self, orig, dest, color=None):
        if not (fen.is_square(orig) and fen.is_square(dest)) or orig == dest:
            return
        existing = [s for s in self.shapes if s["orig"] == orig and s.get("dest") == dest]
        if existing:
            self.shapes = [s for s in self.shapes if s not in existing]
        else:
            self.shapes.append({"orig": orig, "dest": dest, "brush": brush_color(color)})

    def reset_highlights(self):
        self.shapes = []
        self.selected_square = None
