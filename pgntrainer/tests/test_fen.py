import pytest

from pgntrainer import fen

# fmt: off
FENS = [
    fen.START_FEN,
    "r1bqkb1r/pppp1ppp/2n2n2/4p2Q/2B1P3/8/PPPP1PPP/RNB1K1NR w KQkq - 4 4",
    "8/8/8/4k3/8/8/4K3/8 b - - 10 60",
    "4k3/8/8/8/8/8/8/R3K3 w - - 0 1",
]
# fmt: on


@pytest.mark.parametrize("fen_string", FENS)
def test_placement_round_trip(fen_string):
    position = fen.decode(fen_string)
    encoded = fen.encode(position)
    assert fen.placement(encoded) == fen.placement(fen_string)


def test_decode_start_position():
    position = fen.decode(fen.START_FEN)
    assert len(position) == 32
    assert position["e1"] == "wK"
    assert position["d8"] == "bQ"
    assert position["a7"] == "bP"
    assert "e4" not in position


def test_decode_accepts_bare_placement():
    assert fen.decode("8/8/8/8/8/8/8/4K3") == {"e1": "wK"}


@pytest.mark.parametrize(
    "bad",
    [
        "",
        "8/8/8/8/8/8/8 w - - 0 1",  # seven ranks
        "8/8/8/8/8/8/8/9 w - - 0 1",
        "8/8/8/8/8/8/8/4X3 w - - 0 1",
        "8/8/8/8/8/8/8/4K4 w - - 0 1",  # nine squares
        "8/8/8/8/8/8/8/4K2 w - - 0 1",  # seven squares
    ],
)
def test_decode_rejects_malformed(bad):
    with pytest.raises(fen.InvalidFenError):
        fen.decode(bad)


def test_invalid_fen_is_a_value_error():
    with pytest.raises(ValueError):
        fen.decode("nonsense")


def test_encode_fields():
    encoded = fen.encode({"e1": "wK", "e8": "bK"}, turn="b", fullmove=12)
    assert encoded == "4k3/8/8/8/8/8/8/4K3 b - - 0 12"


def test_pad_fen():
    assert fen.pad_fen("") == fen.START_FEN
    assert fen.pad_fen(None) == fen.START_FEN
    assert fen.pad_fen("4k3/8/8/8/8/8/8/4K3") == "4k3/8/8/8/8/8/8/4K3 w - - 0 1"
    assert fen.pad_fen("4k3/8/8/8/8/8/8/4K3 b") == "4k3/8/8/8/8/8/8/4K3 b - - 0 1"
    assert fen.pad_fen(fen.START_FEN) == fen.START_FEN


def test_side_to_move_and_fullmove():
    assert fen.side_to_move("4k3/8/8/8/8/8/8/4K3 b - - 0 7") == "b"
    assert fen.side_to_move("4k3/8/8/8/8/8/8/4K3") == "w"
    assert fen.fullmove_number("4k3/8/8/8/8/8/8/4K3 b - - 0 7") == 7
    assert fen.fullmove_number("4k3/8/8/8/8/8/8/4K3") == 1
    assert fen.fullmove_number("4k3/8/8/8/8/8/8/4K3 w - - 0 0") == 1


def test_is_square():
    assert fen.is_square("e4")
    assert not fen.is_square("e9")
    assert not fen.is_square("i1")
    assert not fen.is_square(None)
