"""Saved songs on local disk.

All songs live in one JSON file holding a list of persisted songs, keyed by
name.  Writes go to a temporary file that is then renamed over the
original, so a failed save leaves the previous file as it was.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from .exceptions import MalformedInputError, ValidationFailedError
from .models import Composition
from .serialization import from_persisted, to_persisted

logger = logging.getLogger(__name__)


class LocalSongStore:
    """Name-keyed collection of saved songs backed by a JSON file."""

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    def list(self) -> list[Composition]:
        """Return every saved song; an absent file means no songs yet."""
        return [from_persisted(entry) for entry in self._read()]

    def get(self, name: str) -> Composition | None:
        for entry in self._read():
            if entry.get("name") == name:
                return from_persisted(entry)
        return None

    def save(self, composition: Composition) -> list[Composition]:
        """Insert or replace the song with the same name.

        Raises :class:`~lyricist.exceptions.ValidationFailedError` if the song
        has no name; the file is not touched in that case.
        """
        if not composition.name.strip():
            raise ValidationFailedError("Song name is required to save")

        entries = self._read()
        persisted = to_persisted(composition)
        for i, entry in enumerate(entries):
            if entry.get("name") == composition.name:
                entries[i] = persisted
                break
        else:
            entries.append(persisted)

        self._write(entries)
        logger.info("Saved song %r to %s", composition.name, self.path)
        return [from_persisted(entry) for entry in entries]

    def delete(self, name: str) -> list[Composition]:
        entries = [entry for entry in self._read() if entry.get("name") != name]
        self._write(entries)
        logger.info("Deleted song %r from %s", name, self.path)
        return [from_persisted(entry) for entry in entries]

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()

    def _read(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            entries = json.loads(self.path.read_text(encoding="utf-8"))
        except ValueError as exc:
            raise MalformedInputError(f"{self.path} is not valid JSON ({exc})") from exc
        if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
            raise MalformedInputError(f"{self.path} does not hold a list of songs")
        return entries

    def _write(self, entries: list[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".songs-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(entries, fh, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            os.unlink(tmp_name)
            raise
