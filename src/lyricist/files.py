import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from .exceptions import MalformedInputError
from .models import Composition
from .serialization import from_persisted, to_persisted

logger = logging.getLogger(__name__)


def export_filename(name: str) -> str:
    """Return the default export filename, e.g. ``"Morning Coffee"`` -> ``morning_coffee.json``."""
    return f"{re.sub(r'[^a-z0-9]', '_', name or 'Untitled Song', flags=re.IGNORECASE).lower()}.json"


def export_song(
    composition: Composition,
    path: str | Path | None = None,
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> Path:
    """Write *composition* as an indented JSON document and return its path.

    This is the only place ``exportedAt`` is stamped.
    """
    dest = Path(path) if path else Path(export_filename(composition.name))
    data = to_persisted(composition, exported_at=clock())
    if not data["name"]:
        data["name"] = "Untitled Song"
    dest.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Exported %r to %s", data["name"], dest)
    return dest


def import_song(path: str | Path) -> Composition:
    """Read a song from a JSON file previously written by :func:`export_song`.

    Raises :class:`~lyricist.exceptions.MalformedInputError` if the file
    cannot be read or parsed.  Callers load the result into their store only
    once this returns.
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise MalformedInputError(f"could not read {path} ({exc})") from exc
    return from_persisted(raw)
