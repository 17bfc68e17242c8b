"""Reference selection state per role.

After grouping, the user picks which files of each role to actually use.
A :class:`RefSelection` records the picking mode, the chosen filenames and,
for multiple picks, how they are spread across output images.

Selections are immutable; every transition returns a new instance.
:func:`selection_mapping` turns the pose and outfit selections into an
explicit mapping that :func:`~imagestudio.core.job.build_job` uses verbatim.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Sequence

from .grouping import GroupedFiles
from .mapping import MappingItem, rotate
from .roles import Role


class SelectMode(str, Enum):
    NONE = "NONE"
    SINGLE = "SINGLE"
    MULTIPLE = "MULTIPLE"


class MapMode(str, Enum):
    FIRST = "FIRST"
    ROTATE = "ROTATE"
    PAIR_BY_INDEX = "PAIR_BY_INDEX"


# Map mode a role switches to when it first enters MULTIPLE mode.
MULTIPLE_DEFAULT_MAP_MODE: dict[Role, MapMode] = {
    Role.FACE: MapMode.ROTATE,
    Role.POSE: MapMode.ROTATE,
    Role.OBJECT: MapMode.ROTATE,
    Role.OUTFIT: MapMode.PAIR_BY_INDEX,
}


@dataclass(frozen=True)
class RefSelection:
    """Which files of one role are used, and how."""

    mode: SelectMode = SelectMode.SINGLE
    selected: tuple[str, ...] = ()
    map_mode: MapMode = MapMode.FIRST

    @property
    def first(self) -> str | None:
        return self.selected[0] if self.selected else None

    def to_dict(self) -> dict:
        return {
            "mode": self.mode.value,
            "selected": list(self.selected),
            "map_mode": self.map_mode.value,
        }


def _single(names: Sequence[str]) -> RefSelection:
    return RefSelection(SelectMode.SINGLE, tuple(names[:1]), MapMode.FIRST)


def default_selections(grouped: GroupedFiles) -> dict[Role, RefSelection]:
    """Return the starting selection for every role.

    FACE and POSE pick their first file, OBJECT picks its first file or
    NONE when there are no objects, and OUTFIT selects every outfit paired
    by index.
    """
    objects = grouped[Role.OBJECT]
    return {
        Role.FACE: _single(grouped[Role.FACE]),
        Role.POSE: _single(grouped[Role.POSE]),
        Role.OBJECT: _single(objects) if objects else RefSelection(SelectMode.NONE),
        Role.OUTFIT: RefSelection(
            SelectMode.MULTIPLE, tuple(grouped[Role.OUTFIT]), MapMode.PAIR_BY_INDEX
        ),
    }


def change_mode(
    selection: RefSelection,
    mode: SelectMode,
    available: Sequence[str],
    role: Role,
) -> RefSelection:
    """Switch *selection* to *mode*, carrying over what still makes sense.

    Args:
        selection: Current selection.
        mode: Requested mode.
        available: Sorted filenames of the role.
        role: Role the selection belongs to.  Entering MULTIPLE from a FIRST
            map mode switches to the role's entry in
            :data:`MULTIPLE_DEFAULT_MAP_MODE`.

    Returns:
        The new selection.
    """
    mode = SelectMode(mode)
    if mode is SelectMode.NONE:
        return RefSelection(SelectMode.NONE, (), MapMode.FIRST)

    if mode is SelectMode.SINGLE:
        keep = selection.selected[:1] or tuple(available[:1])
        return RefSelection(SelectMode.SINGLE, keep, MapMode.FIRST)

    selected = selection.selected or tuple(available)
    map_mode = selection.map_mode
    if map_mode is MapMode.FIRST:
        map_mode = MULTIPLE_DEFAULT_MAP_MODE[Role(role)]
    return RefSelection(SelectMode.MULTIPLE, selected, map_mode)


def toggle(selection: RefSelection, filename: str) -> RefSelection:
    """Add *filename* to the selection, or remove it if already present."""
    if filename in selection.selected:
        selected = tuple(name for name in selection.selected if name != filename)
    else:
        selected = selection.selected + (filename,)
    return replace(selection, selected=selected)


def pick(selection: RefSelection, image_index: int) -> str | None:
    """Return the file this selection contributes to a 1-based output slot."""
    if selection.mode is SelectMode.NONE or not selection.selected:
        return None
    if selection.mode is SelectMode.SINGLE or selection.map_mode is MapMode.FIRST:
        return selection.selected[0]
    if selection.map_mode is MapMode.ROTATE:
        return rotate(selection.selected, image_index)
    # PAIR_BY_INDEX: surplus outputs get no reference of this role.
    if image_index <= len(selection.selected):
        return selection.selected[image_index - 1]
    return None


def selection_mapping(
    pose: RefSelection,
    outfit: RefSelection,
    output_count: int,
) -> list[MappingItem]:
    """Build an explicit mapping from pose and outfit selections.

    Outfits paired by index stop the batch at the last selected outfit, so a
    request for five images with three paired outfits yields three items.
    """
    count = output_count
    if outfit.mode is SelectMode.MULTIPLE and outfit.map_mode is MapMode.PAIR_BY_INDEX and outfit.selected:
        count = min(output_count, len(outfit.selected))
    return [
        MappingItem(image_index=i, pose=pick(pose, i), outfit=pick(outfit, i))
        for i in range(1, count + 1)
    ]
