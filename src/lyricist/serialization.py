"""Conversion between :class:`~lyricist.models.Composition` and its JSON shape.

The same shape is used for the local song file, remote API payloads and
file export::

    {
      "name": "Morning Coffee",
      "songId": "song-1", "userId": "user-1",
      "items": [
        {"id": "section-1", "type": "section", "text": "Verse"},
        {"id": "line-1", "type": "line", "text": "Wake up",
         "chords": [{"symbol": "C", "column": 0}], "sectionId": "section-1"}
      ],
      "wordLadderSets": [],
      "lastModified": "2025-01-01T09:30:00Z",
      "exportedAt": "2025-01-01T09:31:00Z"      # export path only
    }

Older saves are still readable:

* content stored under ``lines`` instead of ``items``;
* items without a ``type`` (all lines);
* ``{"type": "group", "sectionName": ..., "lines": [...]}`` blocks, which
  become a section header followed by its lines;
* chords stored as ``{"name", "position"}`` where position is a percentage
  of the drawn line width rather than a character column.
"""

import copy
import json
import math
from datetime import datetime, timezone
from typing import Any

from .exceptions import InvalidItemError, MalformedInputError
from .models import Chord, Composition, Item, Line, SectionHeader, new_item_id
from .sections import assign_sections


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def format_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: Any, field_name: str) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedInputError(f"{field_name} must be an ISO-8601 string")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise MalformedInputError(f"{field_name} is not a valid timestamp: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ---------------------------------------------------------------------------
# Composition -> JSON shape
# ---------------------------------------------------------------------------


def to_persisted(composition: Composition, *, exported_at: datetime | None = None) -> dict:
    """Return the JSON-ready dict for *composition*.

    ``exportedAt`` is only written when *exported_at* is given, which the
    file export path does; ordinary saves leave it out.
    """
    data = {
        "name": composition.name,
        "songId": composition.song_id,
        "userId": composition.user_id,
        "items": [_item_to_dict(item) for item in composition.items],
        "wordLadderSets": copy.deepcopy(composition.word_ladder_sets),
        "lastModified": format_timestamp(composition.last_modified),
    }
    if exported_at is not None:
        data["exportedAt"] = format_timestamp(exported_at)
    return data


def _item_to_dict(item: Item) -> dict:
    if isinstance(item, SectionHeader):
        return {"id": item.id, "type": "section", "text": item.text}
    return {
        "id": item.id,
        "type": "line",
        "text": item.text,
        "chords": [{"symbol": c.symbol, "column": c.column} for c in item.chords],
        "sectionId": item.section_id,
    }


# ---------------------------------------------------------------------------
# JSON shape -> Composition
# ---------------------------------------------------------------------------


def from_persisted(data: dict | str | bytes) -> Composition:
    """Build a :class:`Composition` from persisted data.

    *data* may be an already-decoded dict or raw JSON text.

    Raises :class:`~lyricist.exceptions.MalformedInputError` when the payload
    is not valid JSON, has no ``name``, carries neither ``items`` nor
    ``lines``, or contains an unreadable item.
    """
    if isinstance(data, (str, bytes, bytearray)):
        try:
            data = json.loads(data)
        except ValueError as exc:
            raise MalformedInputError(f"not valid JSON ({exc})") from exc

    if not isinstance(data, dict):
        raise MalformedInputError("expected a JSON object")

    name = data.get("name")
    if not isinstance(name, str):
        raise MalformedInputError("missing song name")

    # Current saves use "items"; older ones stored plain lines under "lines".
    if isinstance(data.get("items"), list):
        raw_items = data["items"]
    elif isinstance(data.get("lines"), list):
        raw_items = data["lines"]
    else:
        raise MalformedInputError("song has neither 'items' nor 'lines'")

    items = _read_items(raw_items)

    word_ladder_sets = data.get("wordLadderSets")
    if word_ladder_sets is None:
        word_ladder_sets = []
    if not isinstance(word_ladder_sets, list):
        raise MalformedInputError("wordLadderSets must be a list")

    return Composition(
        name=name,
        song_id=_optional_str(data, "songId"),
        user_id=_optional_str(data, "userId"),
        items=items,
        word_ladder_sets=copy.deepcopy(word_ladder_sets),
        last_modified=parse_timestamp(data.get("lastModified"), "lastModified"),
        exported_at=parse_timestamp(data.get("exportedAt"), "exportedAt"),
    )


def _optional_str(data: dict, key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, (str, int)) or isinstance(value, bool):
        raise MalformedInputError(f"{key} must be a string")
    return str(value)


def _read_items(raw_items: list) -> list[Item]:
    items: list[Item] = []
    for entry in raw_items:
        if not isinstance(entry, dict):
            raise MalformedInputError(f"item must be an object, got {type(entry).__name__}")
        kind = entry.get("type", "line")
        try:
            if kind == "line":
                items.append(_read_line(entry))
            elif kind == "section":
                items.append(_read_section(entry, entry.get("text", entry.get("sectionName", ""))))
            elif kind == "group":
                items.append(_read_section(entry, entry.get("sectionName", entry.get("text", ""))))
                nested = entry.get("lines") or []
                if not isinstance(nested, list):
                    raise MalformedInputError("group lines must be a list")
                items.extend(_read_line(line) for line in _as_dicts(nested))
            else:
                raise MalformedInputError(f"unknown item type {kind!r}")
        except InvalidItemError as exc:
            raise MalformedInputError(str(exc)) from exc

    ids = [item.id for item in items]
    if len(ids) != len(set(ids)):
        raise MalformedInputError("duplicate item ids")

    # sectionId is derived from position, whatever the file says.
    assign_sections(items)
    return items


def _as_dicts(entries: list) -> list[dict]:
    for entry in entries:
        if not isinstance(entry, dict):
            raise MalformedInputError(f"line must be an object, got {type(entry).__name__}")
    return entries


def _read_section(entry: dict, name: Any) -> SectionHeader:
    if not isinstance(name, str):
        raise MalformedInputError("section name must be a string")
    return SectionHeader(id=_item_id(entry, "section"), text=name)


def _read_line(entry: dict) -> Line:
    text = entry.get("text", "")
    if not isinstance(text, str):
        raise MalformedInputError("line text must be a string")
    raw_chords = entry.get("chords") or []
    if not isinstance(raw_chords, list):
        raise MalformedInputError("line chords must be a list")

    # Later chords win a shared column, same as attaching them one by one.
    by_column: dict[int, Chord] = {}
    for raw in raw_chords:
        chord = _read_chord(raw, text)
        by_column.pop(chord.column, None)
        by_column[chord.column] = chord

    return Line(id=_item_id(entry, "line"), text=text, chords=list(by_column.values()))


def _read_chord(raw: Any, text: str) -> Chord:
    if not isinstance(raw, dict):
        raise MalformedInputError("chord must be an object")
    if "column" in raw:
        return Chord(symbol=raw.get("symbol", raw.get("name")), column=raw["column"])
    if "position" in raw:
        return _chord_from_position(raw.get("name", raw.get("symbol")), raw["position"], text)
    raise MalformedInputError("chord has neither 'column' nor 'position'")


def _chord_from_position(name: Any, position: Any, text: str) -> Chord:
    """Convert a legacy percentage position into a character column.

    Older saves placed chords as a percentage of the drawn line, which was
    the text plus two cells of padding on each side, with the symbol
    centred on that point.
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidItemError("Chord symbol must be a non-empty string")
    if isinstance(position, bool) or not isinstance(position, (int, float)):
        raise MalformedInputError(f"chord position must be a number, got {position!r}")
    if not math.isfinite(position):
        raise MalformedInputError(f"chord position must be finite, got {position!r}")
    total_width = len(text) + 4
    start = math.floor(position / 100 * total_width - len(name.strip()) / 2)
    return Chord(symbol=name, column=max(0, start - 2))


def _item_id(entry: dict, prefix: str) -> str:
    value = entry.get("id")
    if value is None or value == "":
        return new_item_id(prefix)
    if not isinstance(value, str):
        raise MalformedInputError(f"item id must be a string, got {value!r}")
    return value
