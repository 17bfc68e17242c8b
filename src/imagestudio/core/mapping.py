"""Per-output pose/outfit assignment.

A *mapping* says which pose and which outfit reference apply to each of the
``output_count`` generated images.  Outfits are always assigned round-robin
over the sorted outfit bucket.  Poses follow a :class:`PoseMode` strategy:

FIRST
    Every output uses the first pose reference.
ROTATE
    Poses are assigned round-robin, exactly like outfits.

An unset pose or outfit (``None``) means no reference of that role applies.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

from .grouping import GroupedFiles


class PoseMode(str, Enum):
    """Strategy for assigning pose references to output slots."""

    FIRST = "FIRST"
    ROTATE = "ROTATE"


@dataclass(frozen=True)
class MappingItem:
    """Reference assignment for one generated image.

    ``image_index`` is 1-based.  A list of items is expected to cover
    ``1..output_count`` in order with no gaps.
    """

    image_index: int
    pose: str | None = None
    outfit: str | None = None

    def to_dict(self) -> dict:
        return {"image_index": self.image_index, "pose": self.pose, "outfit": self.outfit}


def rotate(items: Sequence[str], image_index: int) -> str | None:
    """Return the round-robin pick for a 1-based slot, or ``None`` if empty."""
    if not items:
        return None
    return items[(image_index - 1) % len(items)]


def _pose_first(poses: Sequence[str], image_index: int) -> str | None:
    return poses[0] if poses else None


_POSE_STRATEGIES: dict[PoseMode, Callable[[Sequence[str], int], str | None]] = {
    PoseMode.FIRST: _pose_first,
    PoseMode.ROTATE: rotate,
}


def auto_mapping(
    grouped: GroupedFiles,
    output_count: int,
    pose_mode: PoseMode = PoseMode.FIRST,
) -> list[MappingItem]:
    """Build the deterministic mapping for ``output_count`` images.

    Args:
        grouped: Role buckets from :func:`~imagestudio.core.grouping.group_by_role`.
        output_count: Number of images to generate.  Must already be
            clamped to at least 1 by the caller.
        pose_mode: How poses are spread across outputs.

    Returns:
        One :class:`MappingItem` per output, indices ``1..output_count``.
    """
    pick_pose = _POSE_STRATEGIES[PoseMode(pose_mode)]
    return [
        MappingItem(
            image_index=i,
            pose=pick_pose(grouped.pose, i),
            outfit=rotate(grouped.outfit, i),
        )
        for i in range(1, output_count + 1)
    ]
