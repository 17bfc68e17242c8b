"""Partition accepted reference files into per-role buckets.

Bucket order is load-bearing.  Default selections, ROTATE and PAIR_BY_INDEX
mappings all index into these lists, so each bucket is sorted by plain
code-point comparison of the filename and never depends on upload order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Union

from .roles import Role, detect_roles
from .validation import CandidateFile, ValidationResult

logger = logging.getLogger(__name__)

FileLike = Union[CandidateFile, str]


@dataclass(frozen=True)
class GroupedFiles:
    """Filenames per role, each tuple sorted ascending."""

    face: tuple[str, ...] = ()
    pose: tuple[str, ...] = ()
    outfit: tuple[str, ...] = ()
    object: tuple[str, ...] = ()

    def __getitem__(self, role: Role) -> tuple[str, ...]:
        return getattr(self, role.value.lower())

    def all_filenames(self) -> tuple[str, ...]:
        return self.face + self.pose + self.outfit + self.object

    def to_dict(self) -> dict[str, list[str]]:
        """Return ``{"face": [...], "pose": [...], ...}`` for JSON output."""
        return {role.value.lower(): list(self[role]) for role in Role}


def _filename(item: FileLike) -> str:
    return item if isinstance(item, str) else item.filename


def group_by_role(files: Iterable[FileLike]) -> GroupedFiles:
    """Group accepted files by their single detected role.

    Files that do not resolve to exactly one role are dropped rather than
    raising; :func:`~imagestudio.core.validation.validate_files` should
    already have rejected them.

    Args:
        files: Accepted candidate files or bare filenames.

    Returns:
        :class:`GroupedFiles` with every bucket sorted ascending.
    """
    buckets: dict[Role, list[str]] = {role: [] for role in Role}

    for item in files:
        name = _filename(item)
        roles = detect_roles(name)
        if len(roles) != 1:
            logger.warning(f"Skipping {name!r} while grouping: {len(roles)} role(s) detected")
            continue
        (role,) = roles
        buckets[role].append(name)

    return GroupedFiles(
        face=tuple(sorted(buckets[Role.FACE])),
        pose=tuple(sorted(buckets[Role.POSE])),
        outfit=tuple(sorted(buckets[Role.OUTFIT])),
        object=tuple(sorted(buckets[Role.OBJECT])),
    )


def group_if_valid(result: ValidationResult) -> GroupedFiles | None:
    """Apply the reject-mode gate.

    Returns ``None`` when validation produced any error, otherwise the
    grouped accepted files.
    """
    if result.errors:
        return None
    return group_by_role(result.accepted)
