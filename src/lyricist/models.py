import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union

from .exceptions import InvalidItemError

# Shown in place of an empty lyric line on screen; never part of copied text.
LINE_PLACEHOLDER = "Enter a line of lyrics..."


class ItemKind(Enum):
    LINE = "line"
    SECTION_HEADER = "section"
    CHORD_MARKER = "chord"


def new_item_id(prefix: str) -> str:
    """Return a fresh identifier such as ``line-3f2a9c0d41e5``."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


@dataclass
class Chord:
    """A chord symbol anchored at a zero-based character column of a line.

    The column counts code points of the line's text and may point past its
    end, e.g. a chord held after the last lyric.
    """

    symbol: str
    column: int

    kind = ItemKind.CHORD_MARKER

    def __post_init__(self) -> None:
        if not isinstance(self.symbol, str) or not self.symbol.strip():
            raise InvalidItemError("Chord symbol must be a non-empty string")
        if isinstance(self.column, bool) or not isinstance(self.column, int):
            raise InvalidItemError(f"Chord column must be an integer, got {self.column!r}")
        if self.column < 0:
            raise InvalidItemError(f"Chord column must be >= 0, got {self.column}")
        self.symbol = self.symbol.strip()


@dataclass
class Line:
    """A single lyric line with its chords.

    ``section_id`` names the :class:`SectionHeader` the line sits under, or
    ``None`` for lines before the first header.
    """

    id: str
    text: str = ""
    chords: list[Chord] = field(default_factory=list)
    section_id: str | None = None

    kind = ItemKind.LINE

    def __post_init__(self) -> None:
        if not self.id:
            raise InvalidItemError("Line id must be non-empty")
        if not isinstance(self.text, str):
            raise InvalidItemError(f"Line text must be a string, got {type(self.text).__name__}")
        columns = [chord.column for chord in self.chords]
        if len(columns) != len(set(columns)):
            raise InvalidItemError(f"Line {self.id} has two chords at the same column")

    def chord_at(self, column: int) -> Chord | None:
        for chord in self.chords:
            if chord.column == column:
                return chord
        return None


@dataclass
class SectionHeader:
    """A named section marker: Verse, Chorus, Bridge, ..."""

    id: str
    text: str = ""

    kind = ItemKind.SECTION_HEADER

    def __post_init__(self) -> None:
        if not self.id:
            raise InvalidItemError("Section id must be non-empty")
        if not isinstance(self.text, str):
            raise InvalidItemError(f"Section name must be a string, got {type(self.text).__name__}")


Item = Union[Line, SectionHeader]


def make_line(text: str = "", chords: list[Chord] | None = None) -> Line:
    return Line(id=new_item_id("line"), text=text, chords=list(chords or []))


def make_section(name: str) -> SectionHeader:
    return SectionHeader(id=new_item_id("section"), text=name)


@dataclass
class Composition:
    """The song a user edits: metadata plus an ordered item sequence.

    The position of an item in ``items`` is its order.
    ``word_ladder_sets`` is carried along for the word-association tool and
    is never inspected here.
    """

    name: str = ""
    song_id: str | None = None
    user_id: str | None = None
    items: list[Item] = field(default_factory=list)
    word_ladder_sets: list[Any] = field(default_factory=list)
    last_modified: datetime | None = None
    exported_at: datetime | None = None

    @property
    def lines(self) -> list[Line]:
        return [item for item in self.items if isinstance(item, Line)]

    @property
    def sections(self) -> list[SectionHeader]:
        return [item for item in self.items if isinstance(item, SectionHeader)]

    def index_of(self, item_id: str) -> int | None:
        for i, item in enumerate(self.items):
            if item.id == item_id:
                return i
        return None

    def order_of(self, item_id: str) -> int | None:
        """Return the item's position in the song, or None if absent."""
        return self.index_of(item_id)

    def get(self, item_id: str) -> Item | None:
        i = self.index_of(item_id)
        return None if i is None else self.items[i]
