"""Request handlers for the song API.

Each handler takes an API-Gateway-style event::

    {"httpMethod": "GET", "headers": {"origin": ...},
     "queryStringParameters": {...}, "pathParameters": {...}, "body": "..."}

and returns ``{"statusCode", "headers", "body"}``.  Storage goes through a
:class:`SongTable`; the handlers themselves only validate fields and add
CORS headers.

CORS: the request's origin is echoed back when it is on the allowed list,
otherwise the first allowed origin is sent.  Preflight ``OPTIONS`` requests
get ``200`` with an empty body.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Callable, Protocol

from .config import get_settings
from .serialization import format_timestamp

logger = logging.getLogger(__name__)


class SongTable(Protocol):
    """Document store keyed by ``(userId, songId)``."""

    def query(self, user_id: str) -> list[dict]: ...

    def put(self, item: dict) -> None: ...

    def delete(self, user_id: str, song_id: str) -> None: ...


class MemorySongTable:
    """In-process :class:`SongTable`, for local serving and tests."""

    def __init__(self):
        self._items: dict[tuple[str, str], dict] = {}

    def query(self, user_id: str) -> list[dict]:
        return [dict(item) for (uid, _), item in self._items.items() if uid == user_id]

    def put(self, item: dict) -> None:
        self._items[(item["userId"], item["songId"])] = dict(item)

    def delete(self, user_id: str, song_id: str) -> None:
        self._items.pop((user_id, song_id), None)


# ---------------------------------------------------------------------------
# CORS / response helpers
# ---------------------------------------------------------------------------


def cors_headers(event: dict, method: str, allowed_origins: list[str] | None = None) -> dict:
    origins = allowed_origins if allowed_origins is not None else get_settings().allowed_origins
    headers = event.get("headers") or {}
    origin = headers.get("origin") or headers.get("Origin")
    allowed = origin if origin in origins else origins[0]
    return {
        "Access-Control-Allow-Origin": allowed,
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Allow-Methods": f"{method}, OPTIONS",
        "Access-Control-Allow-Credentials": "true",
    }


def _response(status: int, headers: dict, body: dict | None = None) -> dict:
    return {
        "statusCode": status,
        "headers": headers,
        "body": "" if body is None else json.dumps(body),
    }


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def get_songs(event: dict, table: SongTable, allowed_origins: list[str] | None = None) -> dict:
    """``GET /songs?userId=...``: every song stored for a user."""
    headers = cors_headers(event, "GET", allowed_origins)
    if event.get("httpMethod") == "OPTIONS":
        return _response(200, headers)

    user_id = (event.get("queryStringParameters") or {}).get("userId")
    if not user_id:
        return _response(400, headers, {"error": "Missing required parameter: userId"})

    try:
        songs = table.query(user_id)
    except Exception as exc:
        logger.exception("Failed to retrieve songs for %s", user_id)
        return _response(500, headers, {"error": "Failed to retrieve songs", "details": str(exc)})

    return _response(200, headers, {"songs": songs})


def save_song(
    event: dict,
    table: SongTable,
    allowed_origins: list[str] | None = None,
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> dict:
    """``POST /songs``: insert or replace a song."""
    headers = cors_headers(event, "POST", allowed_origins)
    if event.get("httpMethod") == "OPTIONS":
        return _response(200, headers)

    try:
        song = json.loads(event.get("body") or "")
    except ValueError as exc:
        return _response(500, headers, {"error": "Failed to save song", "details": str(exc)})

    if not isinstance(song, dict) or not (song.get("userId") and song.get("songId") and song.get("name")):
        return _response(400, headers, {"error": "Missing required fields: userId, songId, name"})

    item = {
        "userId": song["userId"],
        "songId": song["songId"],
        "name": song["name"],
        "items": song.get("items") or [],
        "wordLadderSets": song.get("wordLadderSets") or [],
        "lastModified": song.get("lastModified") or format_timestamp(clock()),
        "exportedAt": song.get("exportedAt"),
    }
    try:
        table.put(item)
    except Exception as exc:
        logger.exception("Failed to save song %s", song["songId"])
        return _response(500, headers, {"error": "Failed to save song", "details": str(exc)})

    return _response(200, headers, {"message": "Song saved successfully", "song": item})


def delete_song(event: dict, table: SongTable, allowed_origins: list[str] | None = None) -> dict:
    """``DELETE /songs/{userId}/{songId}``."""
    headers = cors_headers(event, "DELETE", allowed_origins)
    if event.get("httpMethod") == "OPTIONS":
        return _response(200, headers)

    params = event.get("pathParameters") or {}
    user_id, song_id = params.get("userId"), params.get("songId")
    if not user_id or not song_id:
        return _response(400, headers, {"error": "Missing required parameters: userId, songId"})

    try:
        table.delete(user_id, song_id)
    except Exception as exc:
        logger.exception("Failed to delete song %s", song_id)
        return _response(500, headers, {"error": "Failed to delete song", "details": str(exc)})

    return _response(200, headers, {"message": "Song deleted successfully"})
