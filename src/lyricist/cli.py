import json
import logging
import sys
from pathlib import Path

import click

from .chordpro import ChordProFormatter
from .config import get_settings
from .exceptions import LyricistError, RemoteFailureError
from .files import export_song, import_song
from .models import new_item_id
from .remote import RemoteSongClient
from .render import copy_text, render_display
from .samples import sample_song
from .serialization import to_persisted
from .storage import LocalSongStore
from .textimport import parse_composition


def _fail(message: object) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _output(text: str, output_path: str | None) -> None:
    if output_path:
        Path(output_path).write_text(text, encoding="utf-8")
        click.echo(f"Written to {output_path}")
    else:
        click.echo(text)


def _remote_client() -> RemoteSongClient:
    settings = get_settings()
    if not settings.api_url:
        _fail("LYRICIST_API_URL is not configured; cloud sync is unavailable")
    return RemoteSongClient(settings.api_url, timeout=settings.request_timeout)


@click.group()
@click.option("--songs-file", default=None, metavar="PATH",
              help="Saved-songs file (default: LYRICIST_SONGS_FILE or the user data dir).")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log debug output to stderr.")
@click.pass_context
def main(ctx: click.Context, songs_file: str | None, verbose: bool) -> None:
    """Compose song lyrics with chords and render them as aligned text."""
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = LocalSongStore(songs_file or settings.songs_file)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--display", is_flag=True, default=False,
              help="Show placeholders for empty lines, as the editor does.")
@click.option("--chordpro", is_flag=True, default=False, help="Render ChordPro instead of plain text.")
@click.option("-o", "--output", "output_path", default=None, metavar="PATH",
              help="Write to a file instead of stdout.")
def render(file: str, display: bool, chordpro: bool, output_path: str | None) -> None:
    """Render a song JSON FILE as chord-over-lyric text."""
    try:
        song = import_song(file)
    except LyricistError as exc:
        _fail(exc)

    if chordpro:
        text = ChordProFormatter().render(song)
        _output(text.rstrip("\n"), output_path)
    elif display:
        _output(render_display(song), output_path)
    else:
        _output(copy_text(song), output_path)


@main.command()
@click.option("--save", is_flag=True, default=False, help="Also add the sample to saved songs.")
@click.pass_obj
def sample(store: LocalSongStore, save: bool) -> None:
    """Print the sample song."""
    song = sample_song()
    click.echo(copy_text(song))
    if save:
        try:
            store.save(song)
        except LyricistError as exc:
            _fail(exc)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--name", required=True, help="Name for the parsed song.")
@click.option("--save", is_flag=True, default=False, help="Add the parsed song to saved songs.")
@click.option("-o", "--output", "output_path", default=None, metavar="PATH",
              help="Write the song JSON to a file instead of stdout.")
@click.pass_obj
def parse(store: LocalSongStore, file: str, name: str, save: bool, output_path: str | None) -> None:
    """Parse chord-over-lyric text FILE into song JSON."""
    try:
        text = Path(file).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        _fail(f"could not read {file} ({exc})")
    song = parse_composition(text, name=name)
    if save:
        try:
            store.save(song)
        except LyricistError as exc:
            _fail(exc)
    _output(json.dumps(to_persisted(song), indent=2, ensure_ascii=False), output_path)


# ---------------------------------------------------------------------------
# Saved songs
# ---------------------------------------------------------------------------


@main.command(name="list")
@click.pass_obj
def list_songs(store: LocalSongStore) -> None:
    """List saved songs."""
    try:
        songs = store.list()
    except LyricistError as exc:
        _fail(exc)
    if not songs:
        click.echo("No saved songs.")
        return
    for song in songs:
        stamp = song.last_modified.strftime("%Y-%m-%d %H:%M") if song.last_modified else "-"
        click.echo(f"{song.name}\t{len(song.lines)} lines\t{stamp}")


@main.command(name="import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def import_(store: LocalSongStore, file: str) -> None:
    """Import a song JSON FILE into saved songs."""
    try:
        song = import_song(file)
        store.save(song)
    except LyricistError as exc:
        _fail(exc)
    click.echo(f"Imported {song.name!r}")


@main.command()
@click.argument("name")
@click.option("-o", "--output", "output_path", default=None, metavar="PATH",
              help="Output file path (default: <name>.json)")
@click.pass_obj
def export(store: LocalSongStore, name: str, output_path: str | None) -> None:
    """Export the saved song NAME to a JSON file."""
    try:
        song = store.get(name)
    except LyricistError as exc:
        _fail(exc)
    if song is None:
        _fail(f"No saved song named {name!r}")
    dest = export_song(song, output_path)
    click.echo(f"Written to {dest}")


@main.command()
@click.argument("name")
@click.pass_obj
def delete(store: LocalSongStore, name: str) -> None:
    """Delete the saved song NAME."""
    try:
        store.delete(name)
    except LyricistError as exc:
        _fail(exc)
    click.echo(f"Deleted {name!r}")


# ---------------------------------------------------------------------------
# Cloud sync
# ---------------------------------------------------------------------------


@main.command()
@click.argument("name")
@click.option("--user-id", required=True, help="Owner of the song on the server.")
@click.pass_obj
def push(store: LocalSongStore, name: str, user_id: str) -> None:
    """Upload the saved song NAME to the cloud."""
    try:
        song = store.get(name)
    except LyricistError as exc:
        _fail(exc)
    if song is None:
        _fail(f"No saved song named {name!r}")

    song.user_id = user_id
    song.song_id = song.song_id or new_item_id("song")
    try:
        store.save(song)
    except LyricistError as exc:
        _fail(exc)

    with _remote_client() as client:
        try:
            client.save_song(song)
        except RemoteFailureError as exc:
            _fail(f"{exc} (your local copy is unchanged)")
        except LyricistError as exc:
            _fail(exc)
    click.echo(f"Uploaded {name!r}")


@main.command()
@click.option("--user-id", required=True, help="Whose songs to download.")
@click.pass_obj
def pull(store: LocalSongStore, user_id: str) -> None:
    """Download every cloud song for a user into saved songs."""
    with _remote_client() as client:
        try:
            songs = client.list_songs(user_id)
        except LyricistError as exc:
            _fail(exc)
    try:
        for song in songs:
            store.save(song)
    except LyricistError as exc:
        _fail(exc)
    click.echo(f"Downloaded {len(songs)} songs")
