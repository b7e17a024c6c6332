from django.contrib import admin
from django.urls import path

from pgntrainer import views

admin.site.site_header = "♟️ PGN Trainer Admin ♟️"
admin.site.site_title = "PGN Trainer"
admin.site.index_title = "Admin"

urlpatterns = [
    path("admin/", admin.site.urls),
    path("event/<int:event_id>/", views.event_detail, name="event_detail"),
    path("event/<int:event_id>/position/", views.position, name="event_position"),
    path("event/<int:event_id>/move/", views.move, name="event_move"),
    path("event/<int:event_id>/promote/", views.promote, name="event_promote"),
    path("event/<int:event_id>/delete/", views.delete, name="event_delete"),
]
