from django.core.management.base import BaseCommand, CommandError

from pgntrainer import builder, render
from pgntrainer.models import Event
from pgntrainer.navigator import Navigator, ReplayError
from pgntrainer.tree import parse_path


class Command(BaseCommand):
    help = "Print an event's move tree, and the board at a path"  # noqa: A003

    def add_arguments(self, parser):
        parser.add_argument("event_id", type=int, nargs="?", help="ID of the event")
        parser.add_argument("--file", type=str, help="Read PGN from a file instead")
        parser.add_argument("--path", type=str, default="", help="e.g. 0.0.1")
        parser.add_argument("--pgn", action="store_true", help="Print exported PGN")

    def handle(self, *args, **kwargs):
        tree = self.load_tree(kwargs["event_id"], kwargs["file"])

        self.stdout.write(tree.title or "(untitled)")
        for comment in tree.game_comments:
            self.stdout.write(f"💬 {comment}")
        self.stdout.write(render.render_move_list(tree.root) or "(no moves)")

        path = parse_path(kwargs["path"])
        if path is None:
            raise CommandError(f"Invalid path: {kwargs['path']}")
        if path:
            self.show_position(Navigator(tree), path)

        if kwargs["pgn"]:
            self.stdout.write("")
            self.stdout.write(render.export_pgn(tree))

    def load_tree(self, event_id, file_path):
        if file_path:
            try:
                with open(file_path, "r", encoding="utf-8") as file:
                    return builder.load_game_tree(file.read())
            except OSError as exc:
                raise CommandError(f"Could not read {file_path}: {exc}") from exc

        if event_id is None:
            raise CommandError("Give an event ID or --file")
        try:
            return Event.objects.get(pk=event_id).load_tree()
        except Event.DoesNotExist:
            raise CommandError(f"Event {event_id} does not exist")

    def show_position(self, navigator, path):
        try:
            found = navigator.navigate_to(path)
        except ReplayError as exc:
            raise CommandError(str(exc)) from exc
        if not found:
            raise CommandError(f"No move at path {'.'.join(map(str, path))}")

        self.stdout.write("")
        self.stdout.write(" ".join(move.move_verbose for move in navigator.moves))
        for row in navigator.position.board():
            self.stdout.write(" ".join(piece_letter(piece) for piece in row))
        self.stdout.write(navigator.fen)
        if navigator.comment:
            self.stdout.write(f"💬 {navigator.comment}")


def piece_letter(piece):
    if not piece:
        return "."
    return piece[1] if piece[0] == "w" else piece[1].lower()
