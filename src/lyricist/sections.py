from dataclasses import dataclass, field
from typing import Iterable

from .models import Item, Line, SectionHeader


@dataclass
class SectionGroup:
    """A section header and the lines that follow it.

    ``header`` is None for the lines that come before the first header.
    """

    header: SectionHeader | None
    lines: list[Line] = field(default_factory=list)


def group_sections(items: Iterable[Item]) -> list[SectionGroup]:
    """Split an ordered item sequence into section groups.

    Grouping is positional: every header opens a new group and each line
    joins the group of the nearest header before it.  A line's
    ``section_id`` is not consulted.  Headers without lines still produce a
    (empty) group; the leading unnamed group is only emitted when lines
    precede the first header.
    """
    groups: list[SectionGroup] = []
    current = SectionGroup(header=None)

    for item in items:
        if isinstance(item, SectionHeader):
            if current.header is not None or current.lines:
                groups.append(current)
            current = SectionGroup(header=item)
        else:
            current.lines.append(item)

    if current.header is not None or current.lines:
        groups.append(current)

    return groups


def assign_sections(items: list[Item]) -> None:
    """Point each line's ``section_id`` at the nearest header above it."""
    current: str | None = None
    for item in items:
        if isinstance(item, SectionHeader):
            current = item.id
        else:
            item.section_id = current
