"""Read chord-over-lyric plain text back into song items.

Implements the reverse of :mod:`lyricist.render`:

  1. classify_line()                BLANK / SECTION / CHORD / LYRIC
  2. extract_chords_with_offsets()  (column, name) pairs from a chord line
  3. extract_section_label()        human-readable label from a section line
  4. parse_text()                   full pipeline, raw text → list of items

Chord lines may be written plain (``G    C``, as the renderer does) or with
brackets (``[G]  [C]``).  The column of each chord is the offset of its
first character (or of its opening bracket) in the chord line, which is
exactly the column it was rendered at.

Text the renderer produced comes back with the same lines and chords, as
long as every header is a recognised section keyword and chord symbols are
plain chord names that do not touch each other.  Header names come
back upper-cased and empty lyric lines without chords are dropped.
"""

import re
from enum import Enum, auto

from .models import Chord, Composition, Item, make_line, make_section
from .sections import assign_sections

# ---------------------------------------------------------------------------
# Regexes
# ---------------------------------------------------------------------------

# Valid chord name without brackets.
# Handles:
#   Standard:          A, Am, Am7, Amaj7, Asus4, G/B, C#m7
#   Lowercase bass:    D/a, C/b, D/f#
#   Standalone bass:   /b, /a, /f#
CHORD_NAME_RE = re.compile(
    r"^(?:"
    r"[A-G][#b]?(?:m(?:aj)?|aug|dim|sus|add)?\d*(?:\/[A-Ga-g][#b]?)?"
    r"|"
    r"\/[A-Ga-g][#b]?"  # standalone slash-bass token, e.g. /b, /f#
    r")$"
)

# Any [token] group regardless of content
ANY_BRACKET_RE = re.compile(r"\[([^\]]+)\]")

# Known section-header keywords (case-insensitive)
SECTION_KEYWORDS_RE = re.compile(
    r"^(?:Verse|Chorus|Bridge|Intro|Outro|Solo|Interlude|Instrumental|"
    r"Pre-?Chorus|Tag|Coda|Refrain|Hook)(?:\s+\d+)?$",
    re.IGNORECASE,
)

# Divider rows such as "------------------------" in older copied lyrics.
DIVIDER_RE = re.compile(r"^-{3,}$")


# ---------------------------------------------------------------------------
# LineType
# ---------------------------------------------------------------------------


class LineType(Enum):
    BLANK = auto()  # empty, whitespace only, or a divider row
    SECTION = auto()  # section header: VERSE, [Chorus], Bridge:
    CHORD = auto()  # chord-only line: G    C  or  [G]  [C]
    LYRIC = auto()  # everything else


# ---------------------------------------------------------------------------
# Line classification
# ---------------------------------------------------------------------------


def classify_line(line: str) -> LineType:
    """Classify a single line of text."""
    stripped = line.strip()
    if not stripped or DIVIDER_RE.match(stripped):
        return LineType.BLANK

    # [Label] on its own is a section unless the label is a chord
    m = re.match(r"^\[([^\]]+)\]$", stripped)
    if m and not CHORD_NAME_RE.match(m.group(1)):
        return LineType.SECTION

    # Plain section keyword: "VERSE", "Chorus:", "Bridge 2"
    if SECTION_KEYWORDS_RE.match(stripped.rstrip(":").strip()):
        return LineType.SECTION

    if _is_chord_line(stripped):
        return LineType.CHORD

    return LineType.LYRIC


def _is_chord_line(stripped: str) -> bool:
    brackets = ANY_BRACKET_RE.findall(stripped)
    if brackets and not ANY_BRACKET_RE.sub("", stripped).strip():
        return all(CHORD_NAME_RE.match(t) for t in brackets)
    tokens = stripped.split()
    return bool(tokens) and all(CHORD_NAME_RE.match(t) for t in tokens)


# ---------------------------------------------------------------------------
# Chord extraction
# ---------------------------------------------------------------------------


def extract_chords_with_offsets(line: str) -> list[tuple[int, str]]:
    """Return ``(column, chord_name)`` pairs from a CHORD line, left to right."""
    if ANY_BRACKET_RE.search(line):
        return [
            (m.start(), m.group(1))
            for m in ANY_BRACKET_RE.finditer(line)
            if CHORD_NAME_RE.match(m.group(1))
        ]
    return [(m.start(), m.group()) for m in re.finditer(r"\S+", line) if CHORD_NAME_RE.match(m.group())]


# ---------------------------------------------------------------------------
# Section label extraction
# ---------------------------------------------------------------------------


def extract_section_label(line: str) -> str:
    """Return the label from a SECTION line: ``[Verse 1]``, ``Chorus:`` or ``BRIDGE``."""
    stripped = line.strip()
    m = re.match(r"^\[([^\]]+)\]$", stripped)
    if m:
        return m.group(1)
    return stripped.rstrip(":").strip()


# ---------------------------------------------------------------------------
# Full parser
# ---------------------------------------------------------------------------


def parse_text(text: str) -> list[Item]:
    """Parse chord-over-lyric text into an ordered list of items.

    Algorithm
    ---------
    1. Split *text* into lines and classify each one.
    2. SECTION lines become section headers.
    3. A CHORD line immediately followed by a LYRIC line becomes one lyric
       line with those chords anchored at their offsets.
    4. A CHORD line not followed by a LYRIC line becomes a lyric line with
       empty text (an instrumental passage).
    5. BLANK lines are skipped.
    """
    lines = text.splitlines()
    items: list[Item] = []

    i = 0
    while i < len(lines):
        lt = classify_line(lines[i])

        if lt == LineType.BLANK:
            i += 1
            continue

        if lt == LineType.SECTION:
            items.append(make_section(extract_section_label(lines[i])))
            i += 1
            continue

        if lt == LineType.CHORD:
            chords = _chords(lines[i])
            next_lt = classify_line(lines[i + 1]) if i + 1 < len(lines) else None
            if next_lt == LineType.LYRIC:
                items.append(make_line(lines[i + 1], chords))
                i += 2
            else:
                items.append(make_line("", chords))
                i += 1
            continue

        # LineType.LYRIC, a lyric with no chord line above it
        items.append(make_line(lines[i]))
        i += 1

    assign_sections(items)
    return items


def parse_composition(text: str, name: str = "") -> Composition:
    """Parse *text* into a new :class:`~lyricist.models.Composition` called *name*."""
    return Composition(name=name, items=parse_text(text))


def _chords(line: str) -> list[Chord]:
    by_column: dict[int, Chord] = {}
    for column, name in extract_chords_with_offsets(line):
        by_column[column] = Chord(symbol=name, column=column)
    return list(by_column.values())
