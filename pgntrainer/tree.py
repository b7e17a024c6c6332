import weakref
from dataclasses import dataclass, field
from typing import Iterator, Optional

# NAG = Numeric Annotation Glyphs (PGN supports either NAG numbers or glyphs)
NAG_GLYPHS = {
    1: "!",
    2: "?",
    3: "!!",
    4: "??",
    5: "!?",
    6: "?!",
    10: "=",
    13: "∞",
    14: "⩲",  # White slightly better
    15: "⩱",  # Black slightly better
    16: "±",
    17: "∓",
    18: "+-",
    19: "-+",
}


def nags_to_glyphs(nags) -> str:
    # move punctuation first, then position assessments
    common = [1, 2, 3, 4, 5, 6]
    rest = sorted(n for n in nags if n not in common)
    return "".join(NAG_GLYPHS[n] for n in common + rest if n in nags and n in NAG_GLYPHS)


def ply_for(move_number: int, is_black_move: bool) -> int:
    return (move_number - 1) * 2 + (2 if is_black_move else 1)


@dataclass
class MoveRecord:
    """
    One half-move as stored in the tree. `san` holds SAN for moves that went
    through the rules engine, or coordinates like "e2-e4" / "d1xd8" for
    free-placement moves. Square/piece fields are only set for moves made
    on the board.
    """

    san: str
    comment: Optional[str] = None
    is_black_move: bool = False
    move_number: int = 1
    ply: int = 1
    nags: list[int] = field(default_factory=list)
    shapes: list[dict] = field(default_factory=list)
    from_square: Optional[str] = None
    to_square: Optional[str] = None
    piece: Optional[str] = None
    captured: Optional[str] = None
    promotion: Optional[str] = None

    @property
    def glyphs(self) -> str:
        return nags_to_glyphs(self.nags)

    @property
    def move_verbose(self) -> str:
        dots = "..." if self.is_black_move else "."
        return f"{self.move_number}{dots}{self.san}{self.glyphs}"


class GameNode:
    """
    A position in the move tree, reached by `move` from `parent`.

    children[0] is always the mainline continuation; children[1:] are
    variations in insertion/promotion order. Nodes own their children; the
    parent link is a weak reference, so dropping the root drops the tree.
    """

    def __init__(self, move: Optional[MoveRecord] = None, parent=None):
        self.move = move
        self._parent = weakref.ref(parent) if parent is not None else None
        self.children: list["GameNode"] = []
        self.depth = parent.depth + 1 if parent is not None else 0
        self.initial_comments: Optional[str] = None
        # the same comments as separate blocks, the way the PGN had them
        self.initial_comment_blocks: list[str] = []

    def __repr__(self):
        label = self.move.move_verbose if self.move else "root"
        return f"<GameNode {label} depth={self.depth} children={len(self.children)}>"

    @property
    def parent(self) -> Optional["GameNode"]:
        return self._parent() if self._parent is not None else None

    @property
    def is_root(self) -> bool:
        return self._parent is None

    @property
    def is_main_line(self) -> bool:
        parent = self.parent
        return parent is None or parent.children[0] is self

    @property
    def has_sub_variations(self) -> bool:
        return len(self.children) > 1

    @property
    def path(self) -> list[int]:
        indexes = []
        node = self
        while (parent := node.parent) is not None:
            indexes.append(parent.children.index(node))
            node = parent
        return indexes[::-1]

    def add_child(self, move: MoveRecord) -> "GameNode":
        child = GameNode(move, self)
        self.children.append(child)
        return child

    def insert_variation(self, move: MoveRecord, position: int = -1) -> "GameNode":
        child = GameNode(move, self)
        if position < 0 or position >= len(self.children):
            self.children.append(child)
        else:
            self.children.insert(position, child)
        return child

    def promote_child(self, index: int) -> bool:
        """Move children[index] to the front; the others shift right."""
        if not 0 < index < len(self.children):
            return False
        self.children.insert(0, self.children.pop(index))
        return True

    def remove_child(self, index: int) -> Optional["GameNode"]:
        if not 0 <= index < len(self.children):
            return None
        child = self.children.pop(index)
        child._parent = None
        return child

    def find_child(self, notation: str) -> Optional[int]:
        for index, child in enumerate(self.children):
            if child.move and child.move.san == notation:
                return index
        return None

    def get_node_by_path(self, path) -> Optional["GameNode"]:
        node = self
        for index in path:
            if not isinstance(index, int) or isinstance(index, bool):
                return None
            if not 0 <= index < len(node.children):
                return None
            node = node.children[index]
        return node

    def get_all_moves(self) -> list[MoveRecord]:
        """Moves from the root down to (and including) this node."""
        moves = []
        node = self
        while (parent := node.parent) is not None:
            moves.append(node.move)
            node = parent
        return moves[::-1]

    def mainline(self) -> Iterator["GameNode"]:
        node = self
        while node.children:
            node = node.children[0]
            yield node

    def walk(self) -> Iterator["GameNode"]:
        yield self
        for child in self.children:
            yield from child.walk()

    def subtree_size(self) -> int:
        return 1 + sum(child.subtree_size() for child in self.children)


def is_descendant_path(path, ancestor) -> bool:
    return len(path) > len(ancestor) and list(path[: len(ancestor)]) == list(ancestor)


def is_same_or_descendant_path(path, ancestor) -> bool:
    return list(path) == list(ancestor) or is_descendant_path(path, ancestor)


def parse_path(value) -> Optional[list[int]]:
    """
    "0.0.1" ➤ [0, 0, 1]; "" ➤ []; anything else ➤ None
    """
    value = (value or "").strip()
    if not value:
        return []
    try:
        path = [int(part) for part in value.split(".")]
    except ValueError:
        return None
    return path if all(index >= 0 for index in path) else None


def format_path(path) -> str:
    return ".".join(str(index) for index in path)
