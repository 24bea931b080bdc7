"""Editing operations for a single song.

A :class:`CompositionStore` owns one :class:`~lyricist.models.Composition`
for the length of an editing session.  Every mutating method either
succeeds completely (stamping ``last_modified`` and notifying subscribers)
or raises before touching anything.

Section membership is positional: after each mutation every line's
``section_id`` is re-derived from the nearest header above it.  Removing a
header therefore folds its lines into the preceding section, or into the
unnamed leading section when no header precedes it.
"""

import copy
import logging
from datetime import datetime, timezone
from typing import Callable

from .exceptions import InvalidArgumentError, NotFoundError
from .models import Chord, Composition, Item, Line, SectionHeader, make_line, make_section
from .samples import sample_song
from .sections import assign_sections

logger = logging.getLogger(__name__)

Observer = Callable[[Composition], None]


class _End:
    def __repr__(self) -> str:
        return "END"


# Pass as ``before_id`` to :meth:`CompositionStore.reorder` to move an item last.
END = _End()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CompositionStore:
    """Mutable editing state for one song."""

    def __init__(
        self,
        composition: Composition | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._clock = clock
        self._observers: list[Observer] = []
        self._issued: set[str] = set()
        if composition is None:
            composition = Composition(last_modified=clock())
        self._install(composition)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    @property
    def composition(self) -> Composition:
        """The live song.  Read freely; mutate only through the store."""
        return self._composition

    @property
    def items(self) -> list[Item]:
        return self._composition.items

    @property
    def name(self) -> str:
        return self._composition.name

    def snapshot(self) -> Composition:
        """Return a deep copy suitable for saving."""
        return copy.deepcopy(self._composition)

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Call *observer* after every successful mutation.

        Returns a function that removes the subscription.
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    # ------------------------------------------------------------------
    # Lines and sections
    # ------------------------------------------------------------------

    def add_line(self, after_id: str | None = None, text: str = "") -> str:
        index = self._insert_index(after_id)
        line = self._fresh(make_line, text)
        self._composition.items.insert(index, line)
        self._changed("add_line", line.id)
        return line.id

    def add_section(self, name: str, after_id: str | None = None) -> str:
        index = self._insert_index(after_id)
        header = self._fresh(make_section, name)
        self._composition.items.insert(index, header)
        self._changed("add_section", header.id)
        return header.id

    def edit_line_text(self, item_id: str, text: str) -> None:
        line = self._line(item_id)
        line.text = text
        self._changed("edit_line_text", item_id)

    def rename_section(self, item_id: str, name: str) -> None:
        item = self._require(item_id)
        if not isinstance(item, SectionHeader):
            raise NotFoundError(item_id)
        item.text = name
        self._changed("rename_section", item_id)

    def duplicate_line(self, item_id: str) -> str:
        source = self._line(item_id)
        line = self._fresh(
            make_line, source.text, [Chord(c.symbol, c.column) for c in source.chords]
        )
        self._composition.items.insert(self._composition.index_of(item_id) + 1, line)
        self._changed("duplicate_line", line.id)
        return line.id

    def remove_item(self, item_id: str) -> None:
        index = self._composition.index_of(item_id)
        if index is None:
            raise NotFoundError(item_id)
        del self._composition.items[index]
        self._changed("remove_item", item_id)

    def reorder(self, item_id: str, before_id: "str | _End" = END) -> None:
        """Move *item_id* so it sits directly in front of *before_id*.

        ``before_id=END`` moves the item to the end of the song.
        """
        self._require(item_id)
        if before_id is not END:
            if before_id == item_id:
                raise InvalidArgumentError(f"Cannot move {item_id} in front of itself")
            self._require(before_id)

        items = self._composition.items
        item = items.pop(self._composition.index_of(item_id))
        if before_id is END:
            items.append(item)
        else:
            items.insert(self._composition.index_of(before_id), item)
        self._changed("reorder", item_id)

    # ------------------------------------------------------------------
    # Chords
    # ------------------------------------------------------------------

    def attach_chord(self, line_id: str, symbol: str, column: int) -> None:
        """Anchor *symbol* at *column*, replacing any chord already there."""
        line = self._line(line_id)
        chord = self._chord(symbol, column)
        line.chords = [c for c in line.chords if c.column != chord.column]
        line.chords.append(chord)
        self._changed("attach_chord", line_id)

    def remove_chord(self, line_id: str, column: int) -> None:
        line = self._line(line_id)
        if line.chord_at(column) is None:
            raise NotFoundError(f"{line_id}@{column}")
        line.chords = [c for c in line.chords if c.column != column]
        self._changed("remove_chord", line_id)

    def move_chord(self, line_id: str, column: int, new_column: int) -> None:
        line = self._line(line_id)
        existing = line.chord_at(column)
        if existing is None:
            raise NotFoundError(f"{line_id}@{column}")
        moved = self._chord(existing.symbol, new_column)
        line.chords = [c for c in line.chords if c.column not in (column, new_column)]
        line.chords.append(moved)
        self._changed("move_chord", line_id)

    def rename_chord(self, line_id: str, column: int, symbol: str) -> None:
        line = self._line(line_id)
        existing = line.chord_at(column)
        if existing is None:
            raise NotFoundError(f"{line_id}@{column}")
        existing.symbol = self._chord(symbol, column).symbol
        self._changed("rename_chord", line_id)

    # ------------------------------------------------------------------
    # Song-level
    # ------------------------------------------------------------------

    def rename(self, new_name: str) -> None:
        # An empty name is allowed here; saving rejects it.
        self._composition.name = new_name
        self._changed("rename", None)

    def reset(self, template: Composition | None = None) -> None:
        """Replace the whole song, e.g. for "New" or after loading."""
        self._install(copy.deepcopy(template) if template is not None else Composition())
        self._changed("reset", None)

    def load_sample(self) -> None:
        self.reset(sample_song())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _install(self, composition: Composition) -> None:
        ids = [item.id for item in composition.items]
        if len(ids) != len(set(ids)):
            raise InvalidArgumentError("Song contains duplicate item ids")
        self._issued.update(ids)
        self._composition = composition
        assign_sections(composition.items)

    def _fresh(self, factory, *args) -> Item:
        item = factory(*args)
        while item.id in self._issued:
            item = factory(*args)
        self._issued.add(item.id)
        return item

    def _require(self, item_id: str) -> Item:
        item = self._composition.get(item_id)
        if item is None:
            raise NotFoundError(item_id)
        return item

    def _line(self, item_id: str) -> Line:
        item = self._require(item_id)
        if not isinstance(item, Line):
            raise NotFoundError(item_id)
        return item

    def _insert_index(self, after_id: str | None) -> int:
        if after_id is None:
            return len(self._composition.items)
        index = self._composition.index_of(after_id)
        if index is None:
            raise NotFoundError(after_id)
        return index + 1

    @staticmethod
    def _chord(symbol: str, column: int) -> Chord:
        # Chord() raises InvalidItemError, a subclass of InvalidArgumentError.
        return Chord(symbol=symbol, column=column)

    def _changed(self, operation: str, item_id: str | None) -> None:
        assign_sections(self._composition.items)
        self._composition.last_modified = self._clock()
        logger.debug("%s %s", operation, item_id or "")
        for observer in list(self._observers):
            observer(self._composition)
