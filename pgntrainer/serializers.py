from pgntrainer import fen, render, util
from pgntrainer.tree import format_path

annotations = {
    "none": "No annotation",
    "?": "? Poor",
    "?!": "?! Dubious",
    "!?": "!? Interesting",
    "!": "! Good",
    "!!": "!! Brilliant",
    "??": "?? Blunder",
    "=": "= Drawish",
    "∞": "∞ Unclear",
    "⩲": "⩲ White Slight",
    "⩱": "⩱ Black Slight",
    "±": "± White Moderate",
    "∓": "∓ Black Moderate",
    "+-": "+- White Decisive",
    "-+": "-+ Black Decisive",
}


def serialize_tree(tree):
    return {
        "title": tree.title,
        "headers": dict(tree.headers),
        "starting_fen": tree.starting_fen,
        "training_mode": tree.training_mode,
        "initial_comments": tree.root.initial_comments,
        "game_comments": list(tree.game_comments),
        "parse_errors": list(tree.parse_errors),
        "annotations": annotations,
        "moves": [serialize_node(child) for child in tree.root.children],
    }


def serialize_node(node):
    move = node.move
    return {
        "path": format_path(node.path),
        "san": move.san,
        "move_verbose": move.move_verbose,
        "move_number": move.move_number,
        "is_black_move": move.is_black_move,
        "ply": move.ply,
        "comment": move.comment,
        "nags": list(move.nags),
        "annotation": move.glyphs,
        "shapes": list(move.shapes),
        "is_main_line": node.is_main_line,
        "children": [serialize_node(child) for child in node.children],
    }


def serialize_choice(choice):
    if choice is None:
        return None
    return {
        "path": format_path(choice.path),
        "options": [
            {
                "index": option.index,
                "san": option.move.san,
                "move_verbose": option.move.move_verbose,
                "is_main_line": option.is_main_line,
                "node_count": option.node_count,
                "has_sub_variations": option.has_sub_variations,
                "depth": option.depth,
            }
            for option in choice.options
        ],
    }


def serialize_navigator(navigator):
    """Board widget state for the navigator's current position."""
    moves = navigator.moves
    tree = navigator.tree
    color = "black" if fen.side_to_move(tree.starting_fen) == "b" else "white"
    # coordinate moves and set-up positions only make sense to lichess as a FEN
    analysis_fen = None
    if tree.training_mode or tree.starting_fen != fen.START_FEN:
        analysis_fen = navigator.fen
    return {
        "path": format_path(navigator.current_path),
        "fen": navigator.fen,
        "squares": navigator.position.squares(),
        "turn": navigator.position.turn(),
        "rules": navigator.rules.name,
        "moves": [move.move_verbose for move in moves],
        "comment": navigator.comment,
        "pending_choice": serialize_choice(navigator.pending_choice),
        "shapes": list(navigator.shapes),
        "selected_square": navigator.selected_square,
        "targets": navigator.targets,
        "is_complete": navigator.is_complete,
        "move_list_html": render.render_move_list_html(
            navigator.root, navigator.current_path
        ),
        "analysis_url": util.get_analysis_url(moves, color=color, fen=analysis_fen),
    }
