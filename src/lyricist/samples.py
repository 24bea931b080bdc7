from .models import Chord, Composition, Line, SectionHeader
from .sections import assign_sections

SAMPLE_NAME = "Morning Coffee (Sample)"


def sample_song() -> Composition:
    """Return a fresh copy of the "Load Sample" song."""
    items = [
        SectionHeader(id="section-sample-verse", text="Verse"),
        Line(
            id="line-sample-1",
            text="Wake up to the sunrise glow",
            chords=[Chord("C", 0), Chord("G", 15)],
        ),
        Line(
            id="line-sample-2",
            text="Pour a cup and take it slow",
            chords=[Chord("Am", 2), Chord("F", 18)],
        ),
        Line(
            id="line-sample-3",
            text="Every morning feels brand new",
            chords=[Chord("C", 4), Chord("G", 21)],
        ),
        Line(
            id="line-sample-4",
            text="Simple moments just me and you",
            chords=[Chord("Am", 6), Chord("F", 15), Chord("G", 26)],
        ),
        SectionHeader(id="section-sample-chorus", text="Chorus"),
        Line(
            id="line-sample-5",
            text="Morning coffee, warm and sweet",
            chords=[Chord("F", 1), Chord("C", 17)],
        ),
        Line(
            id="line-sample-6",
            text="Makes my day feel complete",
            chords=[Chord("G", 2), Chord("C", 18)],
        ),
    ]
    assign_sections(items)
    return Composition(name=SAMPLE_NAME, items=items)
