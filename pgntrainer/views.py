import json
import logging

from django.db import transaction
from django.http import HttpResponseBadRequest, JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_POST

from pgntrainer.models import Event
from pgntrainer.navigator import Navigator, ReplayError
from pgntrainer.serializers import serialize_navigator, serialize_tree
from pgntrainer.tree import parse_path

logger = logging.getLogger(__name__)


def error_response(message, status=400):
    return JsonResponse({"status": "error", "message": message}, status=status)


def replay_error_response(error: ReplayError):
    return JsonResponse(
        {
            "status": "error",
            "message": str(error),
            "path": error.path,
            "ply_index": error.ply_index,
            "san": error.san,
        },
        status=409,
    )


def event_data(event, navigator):
    return {
        "status": "success",
        "event_id": event.id,
        "title": event.title,
        "tree": serialize_tree(navigator.tree),
        "navigator": serialize_navigator(navigator),
    }


def get_navigator(event, path):
    """Navigator for `event` standing at `path`; raises ReplayError."""
    navigator = Navigator(event.load_tree())
    if path and not navigator.navigate_to(path):
        return None
    return navigator


def load_json(request):
    try:
        data = json.loads(request.body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return data if isinstance(data, dict) else None


@require_GET
def event_detail(request, event_id):
    event = get_object_or_404(Event, pk=event_id)
    navigator = Navigator(event.load_tree())
    return JsonResponse(event_data(event, navigator))


@require_GET
def position(request, event_id):
    event = get_object_or_404(Event, pk=event_id)
    path = parse_path(request.GET.get("path", ""))
    if path is None:
        return HttpResponseBadRequest("Invalid path")

    try:
        navigator = get_navigator(event, path)
    except ReplayError as e:
        return replay_error_response(e)
    if navigator is None:
        return error_response(f"No move at path {request.GET.get('path')}")

    return JsonResponse({"status": "success", **serialize_navigator(navigator)})


@require_POST
@transaction.atomic
def move(request, event_id):
    """
    Play a move at `path` and keep it: {"path": "0.0", "from": "g1",
    "to": "f3"} or {"path": "0.0", "san": "Nf3"}. Playing an existing move
    just follows it.
    """
    event = get_object_or_404(Event.objects.select_for_update(), pk=event_id)
    data = load_json(request)
    if data is None:
        return error_response("Invalid JSON")

    path = parse_path(data.get("path", ""))
    if path is None:
        return error_response("Invalid path")

    try:
        navigator = get_navigator(event, path)
        if navigator is None:
            return error_response(f"No move at path {data.get('path')}")

        if data.get("san"):
            node = navigator.insert_san(data["san"])
        elif data.get("from") and data.get("to"):
            node = navigator.insert_move(data["from"], data["to"], data.get("promotion"))
        else:
            return error_response("Missing parameters")
    except ReplayError as e:
        return replay_error_response(e)

    if node is None:
        return error_response("Illegal move")

    event.save_tree(navigator.tree)
    logger.info("Event %s: %s at %s", event.id, node.move.san, navigator.current_path)
    return JsonResponse(event_data(event, navigator))


def _edit_variation(request, event_id, action):
    event = get_object_or_404(Event.objects.select_for_update(), pk=event_id)
    data = load_json(request)
    if data is None:
        return error_response("Invalid JSON")

    target = parse_path(data.get("path", ""))
    current = parse_path(data.get("current_path", ""))
    if not target or current is None:
        return error_response("Invalid path")

    try:
        navigator = get_navigator(event, current)
        if navigator is None:
            return error_response(f"No move at path {data.get('current_path')}")
        changed = getattr(navigator, action)(target)
    except ReplayError as e:
        return replay_error_response(e)

    if not changed:
        return error_response(f"Cannot {action} {data.get('path')}")

    event.save_tree(navigator.tree)
    logger.info("Event %s: %s %s", event.id, action, data.get("path"))
    return JsonResponse(event_data(event, navigator))


@require_POST
@transaction.atomic
def promote(request, event_id):
    return _edit_variation(request, event_id, "promote")


@require_POST
@transaction.atomic
def delete(request, event_id):
    return _edit_variation(request, event_id, "delete")
