import nh3
from django.conf import settings

# fmt: off
ALLOWED_TAGS = {
    "b", "i", "u", "em", "strong", "a", "hr", "br", "ul", "ol", "li",
    "code", "pre", "blockquote",
}
# fmt: on

ALLOWED_ATTRIBUTES = {
    "a": {"href", "title", "target"},
}


def app_setting(name, default):
    """Setting lookup that also works when Django isn't configured."""
    if not settings.configured:
        return default
    return getattr(settings, name, default)


def clean_html(text):
    return nh3.clean(
        text,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        url_schemes={"http", "https", "mailto"},
    )


def get_analysis_url(moves, color="white", fen=None):
    """Lichess analysis board for a line of SAN moves."""
    base_url = "https://lichess.org/analysis"
    if fen:
        return f"{base_url}/{fen.replace(' ', '_')}?color={color}"
    url_moves = "_".join(move.san for move in moves)
    return f"{base_url}/pgn/{url_moves}?color={color}"
