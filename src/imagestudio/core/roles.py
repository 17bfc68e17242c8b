"""Filename role classification for reference images.

Every reference image plays exactly one *role* during generation: it either
supplies the face identity, the body pose, the outfit, or an object that
should appear in the scene.  Users communicate the role through the filename
itself, e.g. ``face_anna.jpg`` or ``outfit_03.png``.

Rule Table
----------
Classification is driven by :data:`ROLE_KEYWORDS`, an ordered table of
``(Role, keywords)`` pairs.  Each role is tested independently with a
case-insensitive substring match, so a filename can hit zero, one, or
several roles.  Keywords include Thai variants because users
name their folders in both languages.

The keyword table, :data:`IGNORED_FILENAMES` and :data:`IMAGE_EXTENSIONS`
are shared between :mod:`imagestudio.core.validation` and
:mod:`imagestudio.core.grouping`.  Changing one without the other breaks the
"every accepted file has exactly one role" guarantee.
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Semantic category a reference image plays in generation."""

    FACE = "FACE"
    POSE = "POSE"
    OUTFIT = "OUTFIT"
    OBJECT = "OBJECT"


# ---------------------------------------------------------------------------
# Classification constants.
# ---------------------------------------------------------------------------

ROLE_KEYWORDS: tuple[tuple[Role, tuple[str, ...]], ...] = (
    (Role.FACE, ("face", "หน้า")),
    (Role.POSE, ("pose", "ท่า")),
    (Role.OUTFIT, ("outfit", "ชุด", "clothing")),
    (Role.OBJECT, ("object", "prop", "ของ", "item")),
)

# OS metadata files that show up when a whole folder is picked.
IGNORED_FILENAMES: frozenset[str] = frozenset({".ds_store", "thumbs.db", "desktop.ini"})

IMAGE_EXTENSIONS: tuple[str, ...] = (".jpg", ".jpeg", ".png", ".webp")


def normalize_name(filename: str) -> str:
    """Return the case-folded form used for every filename comparison."""
    return filename.lower()


def detect_roles(filename: str) -> frozenset[Role]:
    """Return every role whose keywords occur in *filename*.

    The match is a case-insensitive substring test.  There is no precedence
    between roles: ``face_pose.png`` yields both ``FACE`` and ``POSE``.

    Args:
        filename: Bare filename (no directory component required).

    Returns:
        Set of matched roles, possibly empty.
    """
    name = normalize_name(filename)
    return frozenset(
        role
        for role, keywords in ROLE_KEYWORDS
        if any(keyword.lower() in name for keyword in keywords)
    )


def ordered_roles(roles: frozenset[Role] | set[Role]) -> tuple[Role, ...]:
    """Return *roles* in rule-table order, for stable display and JSON output."""
    return tuple(role for role in Role if role in roles)
