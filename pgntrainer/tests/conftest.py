import pytest

from pgntrainer.models import Event
from pgntrainer.tests import SICILIAN_PGN, TRAINING_PGN


@pytest.fixture()
def sicilian_pgn():
    return SICILIAN_PGN


@pytest.fixture()
def event(db):
    return Event.objects.create(title="Sicilian sidelines", pgn=SICILIAN_PGN)


@pytest.fixture()
def training_event(db):
    return Event.objects.create(title="Rook endings", pgn=TRAINING_PGN)
