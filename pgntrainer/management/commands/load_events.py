from pathlib import Path

import requests
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from pgntrainer import builder, pgn_parser
from pgntrainer.models import Event


class Command(BaseCommand):
    help = "Load every game in a PGN file or URL as an event"  # noqa: A003

    def add_arguments(self, parser):
        parser.add_argument("source", type=str, help="PGN file path or http(s) URL")
        parser.add_argument(
            "--training",
            action="store_true",
            help="Store the events in training (free placement) mode",
        )

    def handle(self, *args, **kwargs):
        source = kwargs["source"]
        pgn_text = self.read_source(source)

        games = pgn_parser.split_games(pgn_text)
        if not games and pgn_text.strip():
            games = [pgn_text.strip()]  # comments only, still worth keeping
        if not games:
            raise CommandError(f"No games found in {source}")

        with transaction.atomic():
            for number, game_text in enumerate(games, start=1):
                tree = builder.load_game_tree(game_text)
                event = Event.objects.create(
                    title=tree.title or f"{Path(source).stem} #{number}",
                    pgn=game_text,
                    training_mode=kwargs["training"] or tree.training_mode,
                )
                moves = event.load_tree().root.subtree_size() - 1
                self.stdout.write(f"♟️ {event} - {moves} moves")
                for error in tree.parse_errors:
                    self.stderr.write(f"   ⚠️ {error}")

        self.stdout.write(self.style.SUCCESS(f"✅ Loaded {len(games)} event(s)"))

    def read_source(self, source):
        if source.startswith(("http://", "https://")):
            self.stdout.write(f"📥 Fetching {source}")
            try:
                response = requests.get(source, timeout=settings.PGNTRAINER_FETCH_TIMEOUT)
                response.raise_for_status()
            except requests.RequestException as exc:
                raise CommandError(f"Could not fetch {source}: {exc}") from exc
            return response.text

        path = Path(source)
        if not path.exists():
            raise CommandError(f"PGN file not found: {path}")
        return path.read_text(encoding="utf-8", errors="replace")
