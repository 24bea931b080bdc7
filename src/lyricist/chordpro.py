"""ChordPro export.

Renders a :class:`~lyricist.models.Composition` to ChordPro (``.cho``) text,
with each chord written inline in front of the character it is anchored to::

    {title: Morning Coffee}

    {start_of_verse: Verse}
    [C]Wake up to the [G]sunrise glow
    {end_of_verse}

Section name → ChordPro directive mapping
-----------------------------------------

+--------------------------------------+------------------------------------+
| Name (case-insensitive first word)   | Directive pair                     |
+======================================+====================================+
| ``Verse``, ``Verse N``               | ``{start_of_verse: Verse N}`` /    |
|                                      | ``{end_of_verse}``                 |
+--------------------------------------+------------------------------------+
| ``Chorus``                           | ``{start_of_chorus}`` /            |
|                                      | ``{end_of_chorus}``                |
+--------------------------------------+------------------------------------+
| ``Bridge``                           | ``{start_of_bridge}`` /            |
|                                      | ``{end_of_bridge}``                |
+--------------------------------------+------------------------------------+
| anything else                        | ``{comment: <name>}``              |
+--------------------------------------+------------------------------------+
| lines before the first header        | no wrapper directive               |
+--------------------------------------+------------------------------------+
"""

from .models import Composition, Line
from .sections import SectionGroup, group_sections

# Section names whose directives ChordPro has standardised.
_STRUCTURED = {
    "verse": ("start_of_verse", "end_of_verse"),
    "chorus": ("start_of_chorus", "end_of_chorus"),
    "bridge": ("start_of_bridge", "end_of_bridge"),
}


class ChordProFormatter:
    """Render a :class:`~lyricist.models.Composition` to ChordPro text."""

    def render(self, composition: Composition) -> str:
        """Return ChordPro text for *composition*.

        The returned string ends with a single newline and uses Unix line
        endings (``\\n``) throughout.
        """
        parts: list[str] = []

        if composition.name:
            parts.append(f"{{title: {composition.name}}}")

        for group in group_sections(composition.items):
            if parts:
                parts.append("")  # blank line before every section
            parts.extend(_render_group(group))

        return "\n".join(parts) + "\n"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def inline_chords(line: Line) -> str:
    """Return *line*'s text with ``[Chord]`` brackets inserted at each anchor.

    Chords anchored past the end of the text are reached by padding the text
    with spaces.

    Example::

        Line(text="hello world", chords=[Chord("G", 0), Chord("C", 6)])
        -> "[G]hello [C]world"
    """
    if not line.chords:
        return line.text

    text = line.text
    furthest = max(chord.column for chord in line.chords)
    if furthest > len(text):
        text = text.ljust(furthest)

    result = text
    # Right to left, so earlier insertions don't shift later anchors.
    for chord in sorted(line.chords, key=lambda c: c.column, reverse=True):
        result = result[: chord.column] + f"[{chord.symbol}]" + result[chord.column :]
    return result


def _render_group(group: SectionGroup) -> list[str]:
    """Return a list of lines for one section (no trailing blank line)."""
    lines = [inline_chords(line) for line in group.lines]

    if group.header is None:
        return lines

    label = group.header.text.strip()
    if not label:
        return lines

    label_lower = label.lower().split()[0]  # first word, e.g. "verse" from "Verse 1"

    if label_lower in _STRUCTURED:
        start_dir, end_dir = _STRUCTURED[label_lower]
        # Full label for verse (e.g. "Verse 1"), bare directive for chorus/bridge
        if label_lower == "verse":
            start_line = f"{{{start_dir}: {label}}}"
        else:
            start_line = f"{{{start_dir}}}"
        return [start_line, *lines, f"{{{end_dir}}}"]

    return [f"{{comment: {label}}}", *lines]
