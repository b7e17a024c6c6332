from datetime import timedelta

from django import forms
from django.contrib import admin
from django.contrib.admin import SimpleListFilter
from django.urls import reverse
from django.utils import timezone
from django.utils.html import format_html
from django.utils.safestring import mark_safe
from djangoql.admin import DjangoQLSearchMixin

from pgntrainer import render
from pgntrainer.models import Event


class RecentEventFilter(SimpleListFilter):
    title = "recently updated"
    parameter_name = "recent"

    def lookups(self, request, model_admin):
        return [("7", "Past week"), ("30", "Past 30 days")]

    def queryset(self, request, queryset):
        if self.value():
            threshold = timezone.now() - timedelta(days=int(self.value()))
            return queryset.filter(updated_at__gte=threshold)
        return queryset


class EventForm(forms.ModelForm):
    class Meta:
        model = Event
        fields = "__all__"
        widgets = {
            "title": forms.TextInput(attrs={"size": 80}),
            "pgn": forms.Textarea(attrs={"rows": 20, "cols": 100}),
        }


@admin.register(Event)
class EventAdmin(DjangoQLSearchMixin, admin.ModelAdmin):
    form = EventForm
    list_display = ("id", "clickable_title", "training_mode", "updated_at")
    list_filter = (RecentEventFilter, "training_mode")
    readonly_fields = ("created_at", "updated_at", "move_list", "json_link")

    @admin.display(description="Title")
    def clickable_title(self, obj):
        link = reverse("admin:pgntrainer_event_change", args=[obj.id])
        return format_html('<a href="{}">{}</a>', link, obj.title or "(untitled)")

    @admin.display(description="Moves")
    def move_list(self, obj):
        if not obj.pgn:
            return "-"
        # comment text is sanitised by the renderer
        return mark_safe(render.render_move_list_html(obj.load_tree().root))

    @admin.display(description="JSON")
    def json_link(self, obj):
        if not obj.id:
            return ""
        url = reverse("event_detail", args=[obj.id])
        return format_html('<a href="{}" target="_blank">Event #{}</a>', url, obj.id)
