import random
from datetime import datetime, timedelta, timezone

import pytest

from lyricist.exceptions import InvalidArgumentError, InvalidItemError, NotFoundError
from lyricist.models import Chord, Composition, Line, SectionHeader
from lyricist.render import render_text
from lyricist.samples import SAMPLE_NAME
from lyricist.store import END, CompositionStore

START = datetime(2025, 1, 1, tzinfo=timezone.utc)


class _Clock:
    """Returns a later time on every call."""

    def __init__(self):
        self.calls = 0

    def __call__(self) -> datetime:
        self.calls += 1
        return START + timedelta(seconds=self.calls)


def _store() -> CompositionStore:
    return CompositionStore(clock=_Clock())


def _texts(store: CompositionStore) -> list[str]:
    return [item.text for item in store.items]


def _assert_well_formed(store: CompositionStore) -> None:
    ids = [item.id for item in store.items]
    assert len(ids) == len(set(ids))
    header_ids = {item.id for item in store.items if isinstance(item, SectionHeader)}
    for item in store.items:
        if isinstance(item, Line) and item.section_id is not None:
            assert item.section_id in header_ids


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def test_new_store_is_empty():
    store = _store()
    assert store.items == []
    assert store.name == ""
    assert store.composition.last_modified == START + timedelta(seconds=1)


def test_stores_are_independent():
    a, b = _store(), _store()
    a.add_line(text="only in a")
    assert b.items == []


def test_store_accepts_existing_composition():
    song = Composition(
        name="Song",
        items=[SectionHeader(id="s1", text="Verse"), Line(id="l1", text="a")],
    )
    store = CompositionStore(song, clock=_Clock())
    assert store.items[1].section_id == "s1"


def test_store_rejects_composition_with_duplicate_ids():
    song = Composition(items=[Line(id="l1"), Line(id="l1")])
    with pytest.raises(InvalidArgumentError):
        CompositionStore(song)


# ---------------------------------------------------------------------------
# add_line / add_section
# ---------------------------------------------------------------------------


def test_add_line_appends_by_default():
    store = _store()
    store.add_line(text="one")
    store.add_line(text="two")
    assert _texts(store) == ["one", "two"]


def test_add_line_after_given_item():
    store = _store()
    first = store.add_line(text="one")
    store.add_line(text="three")
    store.add_line(after_id=first, text="two")
    assert _texts(store) == ["one", "two", "three"]


def test_add_line_unknown_after_id_fails_without_change():
    store = _store()
    store.add_line(text="one")
    stamp = store.composition.last_modified
    with pytest.raises(NotFoundError):
        store.add_line(after_id="nope", text="two")
    assert _texts(store) == ["one"]
    assert store.composition.last_modified == stamp


def test_add_line_returns_unique_ids():
    store = _store()
    ids = {store.add_line() for _ in range(50)}
    assert len(ids) == 50


def test_add_section_assigns_following_lines():
    store = _store()
    before = store.add_line(text="a")
    header = store.add_section("Verse")
    after = store.add_line(text="b")
    assert store.composition.get(before).section_id is None
    assert store.composition.get(after).section_id == header


def test_add_section_after_item_takes_over_later_lines():
    store = _store()
    a = store.add_line(text="a")
    b = store.add_line(text="b")
    header = store.add_section("Chorus", after_id=a)
    assert store.composition.get(a).section_id is None
    assert store.composition.get(b).section_id == header


def test_mutations_update_last_modified():
    store = _store()
    first = store.composition.last_modified
    store.add_line(text="a")
    assert store.composition.last_modified > first


# ---------------------------------------------------------------------------
# Editing
# ---------------------------------------------------------------------------


def test_edit_line_text_keeps_chord_columns():
    store = _store()
    line_id = store.add_line(text="a long line of lyrics")
    store.attach_chord(line_id, "G", 15)
    store.edit_line_text(line_id, "short")
    line = store.composition.get(line_id)
    assert line.text == "short"
    assert line.chords == [Chord("G", 15)]
    assert render_text(store.composition) == " " * 15 + "G\nshort"


def test_edit_line_text_unknown_id():
    with pytest.raises(NotFoundError):
        _store().edit_line_text("nope", "x")


def test_edit_line_text_on_header_is_not_found():
    store = _store()
    header = store.add_section("Verse")
    with pytest.raises(NotFoundError):
        store.edit_line_text(header, "x")


def test_rename_section():
    store = _store()
    header = store.add_section("Verse")
    store.rename_section(header, "Verse 2")
    assert store.composition.get(header).text == "Verse 2"


def test_duplicate_line_copies_text_and_chords():
    store = _store()
    original = store.add_line(text="hello")
    store.attach_chord(original, "G", 0)
    store.add_line(text="after")
    copy_id = store.duplicate_line(original)
    assert copy_id != original
    assert _texts(store) == ["hello", "hello", "after"]
    copy = store.composition.get(copy_id)
    assert copy.chords == [Chord("G", 0)]
    copy.chords[0].symbol = "C"
    assert store.composition.get(original).chords[0].symbol == "G"


def test_rename_allows_empty_name():
    store = _store()
    store.rename("Song")
    assert store.name == "Song"
    store.rename("")
    assert store.name == ""


# ---------------------------------------------------------------------------
# Chords
# ---------------------------------------------------------------------------


def test_attach_chord():
    store = _store()
    line_id = store.add_line(text="hello")
    store.attach_chord(line_id, "G", 2)
    assert store.composition.get(line_id).chords == [Chord("G", 2)]


def test_attach_chord_same_column_replaces():
    store = _store()
    line_id = store.add_line(text="hello")
    store.attach_chord(line_id, "G", 2)
    store.attach_chord(line_id, "C", 4)
    store.attach_chord(line_id, "Am", 2)
    chords = store.composition.get(line_id).chords
    assert chords == [Chord("C", 4), Chord("Am", 2)]


def test_attach_chord_past_end_of_text_allowed():
    store = _store()
    line_id = store.add_line(text="hi")
    store.attach_chord(line_id, "G", 40)
    assert store.composition.get(line_id).chords[0].column == 40


def test_attach_chord_unknown_line():
    with pytest.raises(NotFoundError):
        _store().attach_chord("nope", "G", 0)


def test_attach_chord_negative_column():
    store = _store()
    line_id = store.add_line(text="hello")
    with pytest.raises(InvalidArgumentError):
        store.attach_chord(line_id, "G", -1)
    assert store.composition.get(line_id).chords == []


def test_attach_chord_empty_symbol():
    store = _store()
    line_id = store.add_line(text="hello")
    with pytest.raises(InvalidItemError):
        store.attach_chord(line_id, "", 0)


def test_remove_chord():
    store = _store()
    line_id = store.add_line(text="hello")
    store.attach_chord(line_id, "G", 0)
    store.remove_chord(line_id, 0)
    assert store.composition.get(line_id).chords == []
    with pytest.raises(NotFoundError):
        store.remove_chord(line_id, 0)


def test_move_chord_replaces_chord_at_target():
    store = _store()
    line_id = store.add_line(text="hello")
    store.attach_chord(line_id, "G", 0)
    store.attach_chord(line_id, "C", 3)
    store.move_chord(line_id, 0, 3)
    assert store.composition.get(line_id).chords == [Chord("G", 3)]


def test_move_chord_invalid_column_leaves_chord():
    store = _store()
    line_id = store.add_line(text="hello")
    store.attach_chord(line_id, "G", 0)
    with pytest.raises(InvalidArgumentError):
        store.move_chord(line_id, 0, -2)
    assert store.composition.get(line_id).chords == [Chord("G", 0)]


def test_rename_chord():
    store = _store()
    line_id = store.add_line(text="hello")
    store.attach_chord(line_id, "G", 0)
    store.rename_chord(line_id, 0, "G7")
    assert store.composition.get(line_id).chords == [Chord("G7", 0)]


# ---------------------------------------------------------------------------
# remove_item
# ---------------------------------------------------------------------------


def test_remove_line():
    store = _store()
    a = store.add_line(text="a")
    store.add_line(text="b")
    store.remove_item(a)
    assert _texts(store) == ["b"]


def test_remove_unknown_item():
    with pytest.raises(NotFoundError):
        _store().remove_item("nope")


def test_removing_first_header_moves_lines_to_unnamed_section():
    store = _store()
    header = store.add_section("Verse")
    one = store.add_line(text="one")
    two = store.add_line(text="two")
    store.attach_chord(two, "G", 1)
    store.remove_item(header)

    assert _texts(store) == ["one", "two"]
    assert store.composition.get(one).section_id is None
    assert store.composition.get(two).section_id is None
    assert store.composition.get(two).chords == [Chord("G", 1)]
    _assert_well_formed(store)


def test_removing_header_folds_lines_into_preceding_section():
    store = _store()
    verse = store.add_section("Verse")
    store.add_line(text="v1")
    chorus = store.add_section("Chorus")
    c1 = store.add_line(text="c1")
    c2 = store.add_line(text="c2")
    store.remove_item(chorus)

    assert store.composition.get(c1).section_id == verse
    assert store.composition.get(c2).section_id == verse
    assert render_text(store.composition) == "VERSE\n\nv1\nc1\nc2"


def test_removed_ids_are_not_reused():
    store = _store()
    seen = set()
    for _ in range(20):
        line_id = store.add_line()
        assert line_id not in seen
        seen.add(line_id)
        store.remove_item(line_id)


# ---------------------------------------------------------------------------
# reorder
# ---------------------------------------------------------------------------


def test_reorder_before_item():
    store = _store()
    a = store.add_line(text="a")
    store.add_line(text="b")
    c = store.add_line(text="c")
    store.reorder(c, a)
    assert _texts(store) == ["c", "a", "b"]


def test_reorder_to_end():
    store = _store()
    a = store.add_line(text="a")
    store.add_line(text="b")
    store.reorder(a, END)
    assert _texts(store) == ["b", "a"]


def test_reorder_line_into_section_updates_section_id():
    store = _store()
    loose = store.add_line(text="loose")
    header = store.add_section("Verse")
    store.add_line(text="v1")
    store.reorder(loose, END)
    assert store.composition.get(loose).section_id == header


def test_reorder_before_itself_rejected():
    store = _store()
    a = store.add_line(text="a")
    with pytest.raises(InvalidArgumentError):
        store.reorder(a, a)


def test_reorder_unknown_ids():
    store = _store()
    a = store.add_line(text="a")
    with pytest.raises(NotFoundError):
        store.reorder("nope", a)
    with pytest.raises(NotFoundError):
        store.reorder(a, "nope")
    assert _texts(store) == ["a"]


# ---------------------------------------------------------------------------
# reset / sample / snapshot
# ---------------------------------------------------------------------------


def test_reset_empties_song():
    store = _store()
    store.rename("Song")
    store.add_line(text="a")
    store.reset()
    assert store.items == []
    assert store.name == ""


def test_reset_with_template_copies_it():
    template = Composition(name="T", items=[Line(id="line-t", text="a")])
    store = _store()
    store.reset(template)
    store.edit_line_text("line-t", "changed")
    assert template.items[0].text == "a"
    assert store.name == "T"


def test_reset_never_reissues_template_ids():
    store = _store()
    store.reset(Composition(items=[Line(id="line-t", text="a")]))
    assert all(store.add_line() != "line-t" for _ in range(10))


def test_load_sample():
    store = _store()
    store.load_sample()
    assert store.name == SAMPLE_NAME
    assert store.composition.lines
    _assert_well_formed(store)


def test_snapshot_is_independent():
    store = _store()
    line_id = store.add_line(text="a")
    snap = store.snapshot()
    store.edit_line_text(line_id, "b")
    assert snap.items[0].text == "a"


# ---------------------------------------------------------------------------
# Observers
# ---------------------------------------------------------------------------


def test_observers_notified_on_success_only():
    store = _store()
    seen = []
    store.subscribe(seen.append)
    store.add_line(text="a")
    with pytest.raises(NotFoundError):
        store.remove_item("nope")
    assert seen == [store.composition]


def test_unsubscribe():
    store = _store()
    seen = []
    unsubscribe = store.subscribe(seen.append)
    unsubscribe()
    store.add_line()
    assert seen == []


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


def test_chorus_scenario():
    store = _store()
    store.add_section("Chorus")
    line_id = store.add_line(text="La la")
    store.attach_chord(line_id, "C", 0)
    assert render_text(store.composition).startswith("CHORUS\n\nC\nLa la")


def test_random_edits_keep_song_well_formed():
    rng = random.Random(1234)
    store = _store()
    for _ in range(500):
        ids = [item.id for item in store.items]
        op = rng.choice(["line", "section", "remove", "reorder"])
        if op == "line":
            store.add_line(after_id=rng.choice(ids) if ids and rng.random() < 0.5 else None)
        elif op == "section":
            store.add_section("S", after_id=rng.choice(ids) if ids else None)
        elif op == "remove" and ids:
            store.remove_item(rng.choice(ids))
        elif op == "reorder" and len(ids) > 1:
            item_id, before = rng.sample(ids, 2)
            store.reorder(item_id, before if rng.random() < 0.8 else END)
        _assert_well_formed(store)
