import json

import httpx
import pytest

from lyricist.exceptions import RemoteFailureError, ValidationFailedError
from lyricist.models import Composition, Line
from lyricist.remote import RemoteSongClient, SyncResult
from lyricist.serialization import to_persisted

BASE = "https://api.example.com/prod"


def _song(name="Song", song_id="song-1", user_id="user-1") -> Composition:
    return Composition(
        name=name, song_id=song_id, user_id=user_id, items=[Line(id="line-1", text="hi")]
    )


def _client(handler) -> tuple[RemoteSongClient, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    client = httpx.Client(transport=httpx.MockTransport(record))
    return RemoteSongClient(BASE + "/", client=client), requests


# ---------------------------------------------------------------------------
# list_songs
# ---------------------------------------------------------------------------


def test_list_songs():
    payload = {"songs": [to_persisted(_song("A")), to_persisted(_song("B", song_id="song-2"))]}
    remote, requests = _client(lambda r: httpx.Response(200, json=payload))
    songs = remote.list_songs("user-1")
    assert [s.name for s in songs] == ["A", "B"]
    assert requests[0].method == "GET"
    assert requests[0].url.path == "/prod/songs"
    assert requests[0].url.params["userId"] == "user-1"


def test_list_songs_empty():
    remote, _ = _client(lambda r: httpx.Response(200, json={"songs": []}))
    assert remote.list_songs("user-1") == []


def test_list_songs_server_error():
    remote, _ = _client(
        lambda r: httpx.Response(500, json={"error": "Failed to retrieve songs", "details": "x"})
    )
    with pytest.raises(RemoteFailureError) as exc_info:
        remote.list_songs("user-1")
    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "Failed to retrieve songs"


def test_connection_error_is_remote_failure():
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    remote, _ = _client(boom)
    with pytest.raises(RemoteFailureError) as exc_info:
        remote.list_songs("user-1")
    assert exc_info.value.status_code == 0


# ---------------------------------------------------------------------------
# save_song
# ---------------------------------------------------------------------------


def test_save_song_posts_persisted_shape():
    def echo(request):
        body = json.loads(request.content)
        return httpx.Response(200, json={"message": "Song saved successfully", "song": body})

    remote, requests = _client(echo)
    saved = remote.save_song(_song())
    assert saved == _song()
    assert requests[0].method == "POST"
    assert json.loads(requests[0].content)["songId"] == "song-1"


@pytest.mark.parametrize(
    "song",
    [
        _song(user_id=None),
        _song(song_id=None),
        _song(name=""),
    ],
)
def test_save_song_requires_identifiers(song):
    remote, requests = _client(lambda r: httpx.Response(200, json={}))
    with pytest.raises(ValidationFailedError):
        remote.save_song(song)
    assert requests == []


def test_save_song_bad_request():
    remote, _ = _client(
        lambda r: httpx.Response(400, json={"error": "Missing required fields: userId, songId, name"})
    )
    with pytest.raises(RemoteFailureError) as exc_info:
        remote.save_song(_song())
    assert exc_info.value.status_code == 400
    assert "Missing required fields" in str(exc_info.value)


# ---------------------------------------------------------------------------
# delete_song
# ---------------------------------------------------------------------------


def test_delete_song_uses_path_parameters():
    remote, requests = _client(lambda r: httpx.Response(200, json={"message": "ok"}))
    remote.delete_song("user 1", "song/1")
    assert requests[0].method == "DELETE"
    assert requests[0].url.raw_path == b"/prod/songs/user%201/song%2F1"


def test_delete_song_requires_ids():
    remote, requests = _client(lambda r: httpx.Response(200))
    with pytest.raises(ValidationFailedError):
        remote.delete_song("", "song-1")
    assert requests == []


def test_delete_song_not_ok():
    remote, _ = _client(lambda r: httpx.Response(500, text="internal"))
    with pytest.raises(RemoteFailureError):
        remote.delete_song("user-1", "song-1")


# ---------------------------------------------------------------------------
# sync_to_cloud / is_available
# ---------------------------------------------------------------------------


def test_sync_to_cloud_counts_failures():
    def handler(request):
        body = json.loads(request.content)
        if body["name"] == "Bad":
            return httpx.Response(500, json={"error": "nope"})
        return httpx.Response(200, json={"song": body})

    remote, _ = _client(handler)
    result = remote.sync_to_cloud([_song("Good"), _song("Bad"), _song("Unsaved", song_id=None)])
    assert result == SyncResult(success=1, failed=2)


def test_is_available_true_for_client_errors():
    remote, _ = _client(lambda r: httpx.Response(400, json={"error": "x"}))
    assert remote.is_available()


def test_is_available_false_for_server_errors():
    remote, _ = _client(lambda r: httpx.Response(503))
    assert not remote.is_available()


def test_is_available_false_when_unreachable():
    def boom(request):
        raise httpx.ConnectError("down", request=request)

    remote, _ = _client(boom)
    assert not remote.is_available()
