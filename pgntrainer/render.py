"""
Move list rendering and PGN export.

Ordering follows the usual ChessBase/PGN convention: a move, its comment,
then the main reply, then the sibling alternatives to that reply in
parentheses, then the rest of the line:

    1.e4 e5 (1...c5 2.Nf3) 2.Nf3
"""

from dataclasses import dataclass, field

from django.utils.html import escape

from pgntrainer import util
from pgntrainer.comments import BRUSHES
from pgntrainer.pgn_parser import is_training_mode
from pgntrainer.tree import GameNode, format_path

BRUSH_LETTERS = {brush: letter for letter, brush in BRUSHES.items()}


@dataclass
class MoveListEntry:
    kind: str  # "move", "comment", "start" or "end"
    text: str = ""
    path: list[int] = field(default_factory=list)
    node: GameNode = None
    depth: int = 0  # variation nesting, 0 is the game's main line
    force_number: bool = False
    is_current: bool = False

    @property
    def is_main_line(self) -> bool:
        return self.depth == 0


def format_move(move, force_number=False, glyphs=True) -> str:
    suffix = move.glyphs if glyphs else ""
    if not move.is_black_move:
        return f"{move.move_number}.{move.san}{suffix}"
    if force_number:
        return f"{move.move_number}...{move.san}{suffix}"
    return f"{move.san}{suffix}"


def move_list_entries(root: GameNode, current_path=None) -> list[MoveListEntry]:
    entries = []
    if root.initial_comments:
        entries.append(MoveListEntry("comment", root.initial_comments))
    _line(root, [], 0, True, entries)

    if current_path is not None:
        for entry in entries:
            entry.is_current = entry.kind == "move" and entry.path == list(current_path)
    return entries


def _move(node, path, depth, force_number, entries) -> bool:
    """Emit a move (and its comment); returns whether the next needs a number."""
    entries.append(
        MoveListEntry(
            "move",
            format_move(node.move, force_number),
            path=path,
            node=node,
            depth=depth,
            force_number=force_number,
        )
    )
    if node.move.comment:
        entries.append(MoveListEntry("comment", node.move.comment, path, node, depth))
        return True
    return False


def _line(node, path, depth, force_number, entries):
    while node.children:
        main = node.children[0]
        main_path = path + [0]
        force_number = _move(main, main_path, depth, force_number, entries)

        for index, alternative in enumerate(node.children[1:], start=1):
            alt_path = path + [index]
            entries.append(MoveListEntry("start", "(", alt_path, depth=depth + 1))
            alt_force = _move(alternative, alt_path, depth + 1, True, entries)
            _line(alternative, alt_path, depth + 1, alt_force, entries)
            entries.append(MoveListEntry("end", ")", alt_path, depth=depth + 1))
            force_number = True  # variation break resets numbering

        node, path = main, main_path


def _join(parts) -> str:
    text = ""
    for part in parts:
        if part == ")":
            text += part
            continue
        if text and not text.endswith("("):
            text += " "
        text += part
    return text


def render_move_list(root: GameNode) -> str:
    parts = []
    for entry in move_list_entries(root):
        parts.append(f"{{{entry.text}}}" if entry.kind == "comment" else entry.text)
    return _join(parts)


def render_move_list_html(root: GameNode, current_path=None) -> str:
    html = ""
    for entry in move_list_entries(root, current_path):
        if entry.kind == "move":
            classes = ["move", "mainline-move" if entry.is_main_line else "variation-move"]
            if entry.is_current:
                classes.append("current")
            html += (
                f'<span class="{" ".join(classes)}" '
                f'data-path="{format_path(entry.path)}">{escape(entry.text)}</span> '
            )
        elif entry.kind == "comment":
            html += f'<span class="comment">{util.clean_html(entry.text)}</span> '
        else:
            html += f'<span class="paren">{entry.text}</span>'
    return html.strip()


def _shape_directives(shapes) -> str:
    circles = []
    arrows = []
    for shape in shapes:
        letter = BRUSH_LETTERS.get(shape.get("brush"))
        if not letter:
            continue
        if "dest" in shape:
            arrows.append(f"{letter}{shape['orig']}{shape['dest']}")
        else:
            circles.append(f"{letter}{shape['orig']}")

    directives = ""
    if circles:
        directives += f"[%csl {','.join(circles)}]"
    if arrows:
        directives += f"[%cal {','.join(arrows)}]"
    return directives


def _pgn_comment(text) -> str:
    return "{" + text.replace("}", ")").strip() + "}"


def export_pgn(tree) -> str:
    """Tag pairs plus movetext; variations, comments, NAGs and shapes kept."""
    headers = dict(tree.headers)
    if tree.training_mode and not is_training_mode(headers):
        headers["TrainingMode"] = "1"
    result = headers.get("Result") or "*"

    lines = []
    for key, value in headers.items():
        value = str(value).replace("\\", "\\\\").replace('"', '\\"')
        lines.append(f'[{key} "{value}"]')

    parts = []
    for entry in move_list_entries(tree.root):
        if entry.kind == "move":
            move = entry.node.move
            parts.append(format_move(move, entry.force_number, glyphs=False))
            parts.extend(f"${nag}" for nag in move.nags)
            directives = _shape_directives(move.shapes)
            if directives and not move.comment:
                parts.append(_pgn_comment(directives))
        elif entry.kind == "comment" and entry.node is None:
            blocks = tree.root.initial_comment_blocks or [entry.text]
            parts.extend(_pgn_comment(block) for block in blocks)
        elif entry.kind == "comment":
            directives = _shape_directives(entry.node.move.shapes)
            parts.append(_pgn_comment(f"{directives} {entry.text}".strip()))
        else:
            parts.append(entry.text)

    parts.append(result)
    movetext = _join(parts)

    if lines:
        return "\n".join(lines) + "\n\n" + movetext + "\n"
    return movetext + "\n"
