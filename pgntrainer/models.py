from django.db import models
from django.utils import timezone

from pgntrainer import builder, render


class Event(models.Model):
    """
    One stored PGN record. The tree is never stored: it's rebuilt from
    `pgn` on load, and edits write back an exported PGN.

    `training_mode` forces free placement even when the PGN has no
    TrainingMode/ComponentMode header.
    """

    title = models.CharField(max_length=200, blank=True)
    pgn = models.TextField(blank=True)
    training_mode = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.title or 'Untitled'} ({self.id})"

    def load_tree(self) -> builder.GameTree:
        tree = builder.load_game_tree(self.pgn)
        if self.training_mode:
            tree.training_mode = True
        return tree

    def save_tree(self, tree: builder.GameTree):
        self.pgn = render.export_pgn(tree)
        if not self.title:
            self.title = tree.title
        self.save()

    @property
    def move_count(self):
        return self.load_tree().root.subtree_size() - 1
