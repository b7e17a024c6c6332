import random

import pytest

from pgntrainer import fen
from pgntrainer.navigator import HIGHLIGHT_BRUSHES, Navigator, ReplayError, brush_color
from pgntrainer.rules import FreePlacementRules, StrictRules
from pgntrainer.tests import (
    SICILIAN_PGN,
    TRAINING_PGN,
    assert_mainline_invariant,
    fen_after,
    mainline_sans,
    make_navigator,
    sans,
)
from pgntrainer.tree import MoveRecord


@pytest.fixture()
def nav():
    return make_navigator(SICILIAN_PGN)


def test_starts_at_root(nav):
    assert nav.current_path == []
    assert nav.fen == fen.START_FEN
    assert nav.comment == "Typical ways to meet 1.e4."
    assert isinstance(nav.rules, StrictRules)


def test_navigate_to_replays_position(nav):
    assert nav.navigate_to([0, 1, 0])
    assert nav.fen == fen_after("e4", "c5", "Nf3")
    assert [m.san for m in nav.moves] == ["e4", "c5", "Nf3"]


def test_navigate_to_bad_path_is_noop(nav, caplog):
    nav.navigate_to([0, 0])
    assert not nav.navigate_to([0, 7])
    assert not nav.navigate_to([0, "x"])
    assert nav.current_path == [0, 0]
    assert nav.fen == fen_after("e4", "e5")
    assert "does not resolve" in caplog.text


def test_replay_failure_keeps_state(nav, caplog):
    nav.navigate_to([0])
    broken = nav.root.get_node_by_path([0, 0]).add_child(MoveRecord(san="Ke3"))
    assert broken.path == [0, 0, 1]

    with pytest.raises(ReplayError) as exc_info:
        nav.navigate_to([0, 0, 1])

    assert exc_info.value.ply_index == 2
    assert exc_info.value.san == "Ke3"
    assert exc_info.value.path == [0, 0, 1]
    assert nav.current_path == [0]
    assert nav.fen == fen_after("e4")
    assert "could not be replayed" in caplog.text


def test_advance_single_child(nav):
    assert nav.advance() is None
    assert nav.current_path == [0]


def test_advance_offers_variation_choice(nav):
    nav.navigate_to([0])
    choice = nav.advance()
    assert choice.path == [0]
    assert [o.move.san for o in choice.options] == ["e5", "c5", "e6"]
    assert [o.is_main_line for o in choice.options] == [True, False, False]
    assert [o.node_count for o in choice.options] == [3, 3, 1]
    assert nav.current_path == [0]

    # pending choice blocks further movement until answered
    assert nav.advance() is choice
    assert not nav.retreat()

    assert nav.choose_variation(1)
    assert nav.current_path == [0, 1]
    assert nav.pending_choice is None
    assert nav.fen == fen_after("e4", "c5")


def test_cancel_variation_choice(nav):
    nav.navigate_to([0])
    nav.advance()
    assert not nav.choose_variation(None)
    assert nav.pending_choice is None
    assert nav.current_path == [0]
    assert not nav.choose_variation(0)  # nothing pending any more


def test_navigate_clears_pending_choice(nav):
    nav.navigate_to([0])
    nav.advance()
    nav.navigate_to([])
    assert nav.pending_choice is None


def test_at_end_of_line(nav):
    nav.navigate_to([0, 2])
    assert nav.advance() is None
    assert nav.current_path == [0, 2]
    assert nav.comment == "French"


def test_retreat_start_end(nav):
    assert not nav.retreat()
    assert nav.go_to_end()
    assert nav.current_path == [0, 0, 0, 0]
    assert nav.retreat()
    assert nav.current_path == [0, 0, 0]
    assert nav.go_to_start()
    assert nav.current_path == []
    assert not nav.go_to_start()


def test_position_changed_callback(nav):
    seen = []
    nav.on_position_changed = lambda navigator: seen.append(list(navigator.current_path))
    nav.advance()
    nav.navigate_to([0, 1])
    assert seen == [[0], [0, 1]]


def test_insert_new_move_becomes_variation(nav):
    nav.navigate_to([0])
    node = nav.insert_move("d7", "d5")
    assert node.move.san == "d5"
    assert node.move.is_black_move
    assert node.move.move_number == 1
    assert node.move.from_square == "d7"
    assert sans(nav.root.children[0]) == ["e5", "c5", "e6", "d5"]
    assert nav.current_path == [0, 3]
    assert nav.fen == fen_after("e4", "d5")


def test_insert_first_move_is_main_line():
    nav = make_navigator("")
    node = nav.insert_move("e2", "e4")
    assert node.is_main_line
    assert nav.current_path == [0]
    assert nav.insert_san("c5").move.move_verbose == "1...c5"
    assert nav.insert_san("Nf3").move.move_verbose == "2.Nf3"


def test_insert_existing_move_is_idempotent(nav):
    nav.navigate_to([0])
    before = nav.root.subtree_size()
    node = nav.insert_move("c7", "c5")
    assert node is nav.root.get_node_by_path([0, 1])
    assert nav.current_path == [0, 1]
    assert nav.root.subtree_size() == before


def test_insert_illegal_move_rejected(nav):
    nav.navigate_to([0])
    assert nav.insert_move("e5", "e4") is None
    assert nav.insert_san("Ke7") is None
    assert nav.insert_san("Bb4") is None
    assert sans(nav.root.children[0]) == ["e5", "c5", "e6"]
    assert nav.current_path == [0]


def test_insert_in_opened_up_position(nav):
    nav.navigate_to([0, 0])
    node = nav.insert_san("Bc4")
    assert node.move.move_verbose == "2.Bc4"
    assert nav.current_path == [0, 0, 1]


def test_promote_current_variation(nav):
    nav.navigate_to([0, 2])
    assert nav.promote([0, 2])
    assert sans(nav.root.children[0]) == ["e6", "e5", "c5"]
    assert nav.current_path == [0, 0]
    assert nav.fen == fen_after("e4", "e6")
    assert_mainline_invariant(nav.root)


def test_promote_keeps_navigator_on_same_node(nav):
    nav.navigate_to([0, 1, 0, 0])  # 2...d6
    node = nav.current_node
    assert nav.promote([0, 2])
    assert nav.current_path == [0, 2, 0, 0]
    assert nav.current_node is node

    assert nav.promote([0, 2])
    assert nav.current_path == [0, 0, 0, 0]
    assert nav.current_node is node


def test_promote_main_line_is_noop(nav):
    assert not nav.promote([0, 0])
    assert not nav.promote([])
    assert not nav.promote([0, 9])
    assert sans(nav.root.children[0]) == ["e5", "c5", "e6"]


def test_delete_repositions_to_parent(nav):
    nav.navigate_to([0, 1, 0, 0])
    assert nav.delete([0, 1])
    assert nav.current_path == [0]
    assert sans(nav.root.children[0]) == ["e5", "e6"]
    assert nav.fen == fen_after("e4")


def test_delete_shifts_later_sibling(nav):
    nav.navigate_to([0, 2])
    assert nav.delete([0, 1])
    assert nav.current_path == [0, 1]
    assert nav.current_node.move.san == "e6"


def test_delete_main_line_promotes_next(nav):
    assert nav.delete([0, 0])
    assert sans(nav.root.children[0]) == ["c5", "e6"]
    assert nav.root.children[0].children[0].is_main_line
    assert not nav.delete([0, 5])
    assert not nav.delete([])


def test_mainline_invariant_after_random_edits(nav):
    rng = random.Random(7)
    for _ in range(40):
        nodes = [n for n in nav.root.walk() if not n.is_root]
        if not nodes:
            break
        path = rng.choice(nodes).path
        action = rng.choice(["promote", "delete", "insert"])
        if action == "promote":
            nav.promote(path)
        elif action == "delete":
            nav.delete(path)
        elif nav.navigate_to(path):
            nav.insert_san(rng.choice(["a3", "a6", "h3", "h6", "Nc3", "Nc6"]))
        assert_mainline_invariant(nav.root)
        assert nav.root.get_node_by_path(nav.current_path) is not None


def test_load_discards_everything(nav):
    nav.navigate_to([0, 1])
    nav.toggle_highlight("e4")
    nav.load("1. d4 d5")
    assert nav.current_path == []
    assert nav.shapes == []
    assert sans(nav.root) == ["d4"]


def test_piece_drop_and_promotion_piece():
    nav = make_navigator('[FEN "4k3/1P6/8/8/8/8/8/4K3 w - - 0 1"]\n\n*')
    assert not nav.on_piece_drop("b7", "c8")
    assert nav.on_piece_drop("b7", "b8", "wPn")
    assert nav.current_node.move.san == "b8=N"


def test_click_to_move(nav):
    assert not nav.on_square_click("e4")  # empty square
    assert nav.selected_square is None
    assert not nav.on_square_click("g1")
    assert nav.selected_square == "g1"
    assert not nav.on_square_click("b1")  # reselect own piece
    assert nav.selected_square == "b1"
    assert nav.on_square_click("c3")
    assert nav.current_node.move.san == "Nc3"
    assert nav.selected_square is None


def test_highlights_and_arrows(nav):
    nav.toggle_highlight("e4")
    nav.toggle_highlight("d5", "red")
    nav.toggle_arrow("g1", "f3", "yellow")
    nav.toggle_arrow("g1", "g1")
    nav.toggle_highlight("z9")
    assert nav.shapes == [
        {"orig": "e4", "brush": HIGHLIGHT_BRUSHES["green"]},
        {"orig": "d5", "brush": HIGHLIGHT_BRUSHES["red"]},
        {"orig": "g1", "dest": "f3", "brush": HIGHLIGHT_BRUSHES["yellow"]},
    ]
    nav.on_square_right_click("e4")
    nav.toggle_arrow("g1", "f3")
    assert nav.shapes == [{"orig": "d5", "brush": HIGHLIGHT_BRUSHES["red"]}]
    nav.reset_highlights()
    assert nav.shapes == []


def test_default_brush_setting(settings):
    settings.PGNTRAINER_DEFAULT_BRUSH = "purple"
    assert brush_color() == HIGHLIGHT_BRUSHES["purple"]
    assert brush_color("red") == HIGHLIGHT_BRUSHES["red"]


def test_checkmate_is_complete():
    nav = make_navigator("1. f3 e5 2. g4 Qh4# 0-1")
    assert not nav.is_complete
    nav.go_to_end()
    assert nav.is_complete


class TestFreePlacement:
    @pytest.fixture()
    def nav(self):
        return make_navigator(TRAINING_PGN)

    def test_uses_free_rules(self, nav):
        assert isinstance(nav.rules, FreePlacementRules)
        assert nav.fen == "4k3/8/8/8/8/8/8/R3K3 w - - 0 1"

    def test_any_piece_moves(self, nav):
        node = nav.insert_move("e8", "e3")
        assert node.move.san == "e8-e3"
        assert nav.position.get("e3") == "bK"

        node = nav.insert_move("a1", "b8")
        assert node.move.san == "a1-b8"
        assert node.move.move_verbose == "1...a1-b8"  # plies alternate regardless of piece
        assert nav.position.squares() == {"e3": "bK", "b8": "wR", "e1": "wK"}
        assert not nav.is_complete

    def test_replay_after_navigation(self, nav):
        nav.insert_move("a1", "a7")
        nav.insert_move("e8", "d8")
        nav.go_to_start()
        assert nav.go_to_end()
        assert nav.position.squares() == {"a7": "wR", "d8": "bK", "e1": "wK"}

    def test_idempotent_insert(self, nav):
        nav.insert_move("a1", "a7")
        nav.go_to_start()
        nav.insert_move("a1", "a7")
        assert len(nav.root.children) == 1

    def test_rejects_empty_square(self, nav):
        assert nav.insert_move("d4", "d5") is None
        assert nav.root.children == []

    def test_legal_moves_keep_their_san(self, nav):
        node = nav.insert_move("a1", "a7")
        assert node.move.san == "Ra7"
        nav.go_to_start()
        assert nav.insert_move("a1", "a7") is node


def test_rules_can_be_forced():
    nav = Navigator.from_pgn(SICILIAN_PGN, rules=FreePlacementRules())
    nav.navigate_to([0, 1])
    assert nav.insert_move("e1", "e5").move.san == "e1-e5"


def test_training_game_castles_on_replay():
    nav = make_navigator('[TrainingMode "1"]\n\n1. e4 e5 2. Nf3 Nc6 3. Bc4 Bc5 4. O-O *')
    assert nav.go_to_end()
    assert nav.current_node.move.san == "O-O"
    assert nav.position.get("g1") == "wK"
    assert nav.position.get("f1") == "wR"
    assert nav.fen == fen_after("e4", "e5", "Nf3", "Nc6", "Bc4", "Bc5", "O-O")


def test_training_game_en_passant_on_replay():
    nav = make_navigator('[TrainingMode "1"]\n\n1. e4 a6 2. e5 d5 3. exd6 *')
    assert nav.go_to_end()
    assert nav.current_node.move.san == "exd6"
    assert nav.position.get("d5") is None
    assert nav.fen == fen_after("e4", "a6", "e5", "d5", "exd6")


def test_training_coordinates_for_legal_castling():
    nav = make_navigator(
        '[TrainingMode "1"]\n\n'
        "1. e2-e4 e7-e5 2. g1-f3 b8-c6 3. f1-c4 f8-c5 4. e1-g1 *"
    )
    assert mainline_sans(nav.root) == ["e4", "e5", "Nf3", "Nc6", "Bc4", "Bc5", "O-O"]
    assert nav.go_to_end()
    assert nav.position.get("f1") == "wR"


def test_edits_drop_pending_choice(nav):
    nav.navigate_to([0])
    choice = nav.advance()
    assert [option.move.san for option in choice.options] == ["e5", "c5", "e6"]

    assert nav.promote([0, 2])
    assert nav.pending_choice is None
    choice = nav.advance()
    assert [option.move.san for option in choice.options] == ["e6", "e5", "c5"]
    assert nav.choose_variation(0)
    assert nav.current_node.move.san == "e6"

    nav.navigate_to([0])
    nav.advance()
    assert nav.delete([0, 1])
    assert nav.pending_choice is None


def test_click_selected_square_again_deselects(nav):
    assert not nav.on_square_click("g1")
    assert sorted(nav.targets) == ["f3", "h3"]
    assert not nav.on_square_click("g1")
    assert nav.selected_square is None
    assert nav.targets == []
    assert nav.root.get_node_by_path([0]).move.san == "e4"


def test_failed_delete_changes_nothing(nav, monkeypatch):
    nav.navigate_to([0, 1, 0])

    def broken_replay(node):
        raise ReplayError(node.path, 0, "e4")

    monkeypatch.setattr(nav, "replay", broken_replay)
    with pytest.raises(ReplayError):
        nav.delete([0, 1])
    assert sans(nav.root.children[0]) == ["e5", "c5", "e6"]
    assert nav.current_path == [0, 1, 0]
