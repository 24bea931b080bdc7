"""Client for the remote song API.

Endpoints (all JSON)::

    GET    {base}/songs?userId=<id>        -> {"songs": [...]}
    POST   {base}/songs                    -> {"message": ..., "song": {...}}
    DELETE {base}/songs/<userId>/<songId>  -> {"message": ...}

The local copy of a song stays authoritative: a failed call raises
:class:`~lyricist.exceptions.RemoteFailureError` and changes nothing
locally.  Nothing is retried.
"""

import logging
from dataclasses import dataclass
from urllib.parse import quote

import httpx

from .exceptions import MalformedInputError, RemoteFailureError, ValidationFailedError
from .models import Composition
from .serialization import from_persisted, to_persisted

logger = logging.getLogger(__name__)

_HEADERS = {"Content-Type": "application/json"}


@dataclass
class SyncResult:
    success: int = 0
    failed: int = 0


class RemoteSongClient:
    """Talks to the song API at *base_url*."""

    def __init__(self, base_url: str, timeout: float = 15.0, client: httpx.Client | None = None):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout, headers=_HEADERS)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RemoteSongClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def list_songs(self, user_id: str) -> list[Composition]:
        url = f"{self.base_url}/songs"
        data = self._request("GET", url, params={"userId": user_id})
        songs = data.get("songs") or []
        logger.info("Retrieved %d songs for %s", len(songs), user_id)
        return [from_persisted(song) for song in songs]

    def save_song(self, composition: Composition) -> Composition:
        """Upload *composition* and return the song as the server echoed it."""
        missing = [
            label
            for label, value in (
                ("userId", composition.user_id),
                ("songId", composition.song_id),
                ("name", composition.name.strip()),
            )
            if not value
        ]
        if missing:
            raise ValidationFailedError(f"Missing required fields: {', '.join(missing)}")

        url = f"{self.base_url}/songs"
        data = self._request("POST", url, json=to_persisted(composition))
        logger.info("Saved song %r to cloud", composition.name)
        echoed = data.get("song")
        return from_persisted(echoed) if echoed else composition

    def delete_song(self, user_id: str, song_id: str) -> None:
        if not user_id or not song_id:
            raise ValidationFailedError("Missing required parameters: userId, songId")
        url = f"{self.base_url}/songs/{quote(user_id, safe='')}/{quote(song_id, safe='')}"
        self._request("DELETE", url)
        logger.info("Deleted song %s from cloud", song_id)

    def sync_to_cloud(self, songs: list[Composition]) -> SyncResult:
        """Upload every song in turn; failures are counted, not raised."""
        result = SyncResult()
        for song in songs:
            try:
                self.save_song(song)
            except (RemoteFailureError, ValidationFailedError) as exc:
                logger.warning("Failed to sync song %r: %s", song.name, exc)
                result.failed += 1
            else:
                result.success += 1
        logger.info("Cloud sync complete: %d success, %d failed", result.success, result.failed)
        return result

    def is_available(self) -> bool:
        """Return True if the API answers at all (any status below 500)."""
        try:
            resp = self._client.get(f"{self.base_url}/songs", params={"userId": "test"})
        except httpx.RequestError as exc:
            logger.warning("Cloud sync not available: %s", exc)
            return False
        return resp.status_code < 500

    def _request(self, method: str, url: str, **kwargs) -> dict:
        try:
            resp = self._client.request(method, url, **kwargs)
        except httpx.RequestError as exc:
            raise RemoteFailureError(url, 0, str(exc)) from exc

        if not resp.is_success:
            raise RemoteFailureError(url, resp.status_code, _error_message(resp))

        if not resp.content:
            return {}
        try:
            data = resp.json()
        except ValueError as exc:
            raise MalformedInputError(f"response from {url} is not JSON") from exc
        if not isinstance(data, dict):
            raise MalformedInputError(f"response from {url} is not a JSON object")
        return data


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return resp.reason_phrase
