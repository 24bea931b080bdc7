"""Plain-text renderer for a :class:`~lyricist.models.Composition`.

Produces the canonical chord-over-lyric layout used for display, clipboard
copy and plain-text export::

    a

    VERSE

    G     C
    hello there
    second line

Layout rules
------------

* Groups come out in section order (see :func:`~lyricist.sections.group_sections`).
* A section header is printed upper-cased on its own line, then a blank line.
* A line with chords is printed as a chord line followed by the lyric text.
  Each chord symbol starts at its anchor column; columns past the end of the
  lyric are reached by padding with spaces.  When two symbols overlap, the
  chord written later wins the shared cells.
* One blank line separates groups; nothing trails the last group.
* A song with no lyric lines at all renders as :data:`NO_CONTENT`.

Usage::

    from lyricist.render import copy_text
    text = copy_text(composition)
"""

from .models import LINE_PLACEHOLDER, Composition, Line
from .sections import SectionGroup, group_sections


class _NoContent:
    """Marker returned instead of text when a song has no lyric lines."""

    message = "No lyrics yet. Add a line to get started."

    def __bool__(self) -> bool:
        return False

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return "NO_CONTENT"


NO_CONTENT = _NoContent()


class TextRenderer:
    """Render a :class:`~lyricist.models.Composition` to aligned plain text.

    With ``placeholders=True`` empty lyric lines are shown as
    :data:`~lyricist.models.LINE_PLACEHOLDER`, which is what the editor
    displays; copy and export use the default.
    """

    def __init__(self, placeholders: bool = False):
        self.placeholders = placeholders

    def render(self, composition: Composition) -> str | _NoContent:
        groups = group_sections(composition.items)
        if not any(group.lines for group in groups):
            return NO_CONTENT

        parts: list[str] = []
        for i, group in enumerate(groups):
            if i:
                parts.append("")  # section divider
            parts.extend(self._render_group(group))

        return "\n".join(parts)

    def _render_group(self, group: SectionGroup) -> list[str]:
        out: list[str] = []
        if group.header is not None:
            out.append(group.header.text.upper())
            out.append("")
        for line in group.lines:
            chord_line = render_chord_line(line)
            if chord_line:
                out.append(chord_line)
            if self.placeholders and not line.text:
                out.append(LINE_PLACEHOLDER)
            else:
                out.append(line.text)
        return out


def render_chord_line(line: Line) -> str:
    """Return the chord line that sits above *line*, or "" if it has no chords.

    Example::

        Line(text="hello", chords=[Chord("G", 2)])   ->  "  G"
        Line(text="hello", chords=[Chord("G", 10)])  ->  "          G"
    """
    if not line.chords:
        return ""

    width = max(chord.column + len(chord.symbol) for chord in line.chords)
    cells = [" "] * width
    for chord in line.chords:
        for offset, char in enumerate(chord.symbol):
            cells[chord.column + offset] = char
    return "".join(cells)


def render_text(composition: Composition) -> str | _NoContent:
    """Render *composition*; returns :data:`NO_CONTENT` when it has no lines."""
    return TextRenderer().render(composition)


def render_display(composition: Composition) -> str:
    """Render for on-screen display, with placeholders for empty content."""
    return str(TextRenderer(placeholders=True).render(composition))


def copy_text(composition: Composition) -> str:
    """Return the text to put on the clipboard or into a ``.txt`` export.

    Unlike :func:`render_text` this never returns the no-content marker: an
    empty song copies as an empty string.
    """
    rendered = render_text(composition)
    return rendered if isinstance(rendered, str) else ""
