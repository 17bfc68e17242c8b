"""Strict filename validation for an uploaded reference folder.

The validator runs in *reject mode*: it never raises for a badly named file.
Instead it splits the candidates into accepted files and one typed
:class:`FileValidationError` per rejected file, and the caller decides what
to do.  The reference policy (see :func:`imagestudio.core.grouping.group_if_valid`)
is that any error blocks the whole batch.

Per-file decision sequence (first matching rule wins):

1. **Ignore** - OS metadata files (``.DS_Store``, ``Thumbs.db``, ...) and
   hidden dot-files are dropped silently.
2. **Extension allow-list** - anything that is not ``.png``, ``.jpg``,
   ``.jpeg`` or ``.webp`` is dropped silently.
3. **Duplicate extension** - the lowercased name contains image extension
   tokens more than once in total (``face.jpg.jpg``, ``outfit.jpg.png``).
4. **Classification** - zero roles, or more than one role, is an error;
   exactly one role is accepted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, NamedTuple

from .roles import IGNORED_FILENAMES, IMAGE_EXTENSIONS, Role, detect_roles, normalize_name, ordered_roles

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """User-friendly validation error.

    Raised when settings or a dispatch request cannot proceed.  The message
    is intended to be displayed directly to the user.
    """

    pass


class RejectionReason(str, Enum):
    """Why a candidate file was rejected."""

    NO_ROLE_KEYWORD = "NO_ROLE_KEYWORD"
    MULTIPLE_ROLE_KEYWORDS = "MULTIPLE_ROLE_KEYWORDS"
    DUPLICATE_EXTENSION = "DUPLICATE_EXTENSION"


@dataclass(frozen=True)
class CandidateFile:
    """A file handed over by the upload layer.

    Only ``filename`` is inspected; ``content`` is forwarded untouched to
    the dispatch stage.
    """

    filename: str
    content: bytes = field(default=b"", repr=False, compare=False)


@dataclass(frozen=True)
class FileValidationError:
    """One rejected file and the reason it was rejected."""

    filename: str
    reason: RejectionReason
    detected_roles: tuple[Role, ...] = ()

    def to_dict(self) -> dict:
        return {
            "filename": self.filename,
            "reason": self.reason.value,
            "detected_roles": [role.value for role in self.detected_roles],
        }

    def message(self) -> str:
        """Human-readable explanation suitable for one line of UI output."""
        if self.reason is RejectionReason.NO_ROLE_KEYWORD:
            return "No role keyword (face/pose/outfit/object) in filename"
        if self.reason is RejectionReason.DUPLICATE_EXTENSION:
            return "Repeated image extension (e.g. .jpg.jpg); please rename the file"
        roles = ", ".join(role.value for role in self.detected_roles)
        return f"Multiple role keywords ({roles})"


class ValidationResult(NamedTuple):
    """Output of :func:`validate_files`, both lists in input order."""

    accepted: list[CandidateFile]
    errors: list[FileValidationError]

    @property
    def ok(self) -> bool:
        return not self.errors


# ---------------------------------------------------------------------------
# Rule predicates.
# ---------------------------------------------------------------------------


def should_ignore_file(filename: str) -> bool:
    """Return ``True`` for OS metadata and hidden files."""
    lower = normalize_name(filename)
    return lower in IGNORED_FILENAMES or lower.startswith(".")


def is_image_file(filename: str) -> bool:
    """Return ``True`` when *filename* ends with an allowed image extension."""
    return normalize_name(filename).endswith(IMAGE_EXTENSIONS)


def count_image_extensions(filename: str) -> int:
    """Count image extension tokens in *filename*, summed over all extensions."""
    lower = normalize_name(filename)
    return sum(lower.count(ext) for ext in IMAGE_EXTENSIONS)


def has_duplicate_image_extension(filename: str) -> bool:
    """Return ``True`` when image extension tokens occur more than once.

    The count is the total across the whole allow-list, so ``outfit.jpg.png``
    is rejected even though neither extension repeats on its own.
    """
    return count_image_extensions(filename) > 1


# ---------------------------------------------------------------------------
# Validation.
# ---------------------------------------------------------------------------


def _check(filename: str) -> FileValidationError | None:
    if has_duplicate_image_extension(filename):
        return FileValidationError(filename, RejectionReason.DUPLICATE_EXTENSION)

    roles = detect_roles(filename)
    if not roles:
        return FileValidationError(filename, RejectionReason.NO_ROLE_KEYWORD)
    if len(roles) > 1:
        return FileValidationError(
            filename, RejectionReason.MULTIPLE_ROLE_KEYWORDS, ordered_roles(roles)
        )
    return None


def validate_files(files: Iterable[CandidateFile]) -> ValidationResult:
    """Split candidate files into accepted files and rejection records.

    Ignored and non-image files appear in neither output.  Every file that
    reaches the role check yields at most one error.

    Args:
        files: Candidate files in upload order.

    Returns:
        :class:`ValidationResult` with ``accepted`` and ``errors`` lists,
        each preserving input order.
    """
    accepted: list[CandidateFile] = []
    errors: list[FileValidationError] = []
    skipped = 0

    for candidate in files:
        filename = candidate.filename

        if should_ignore_file(filename) or not is_image_file(filename):
            skipped += 1
            continue

        error = _check(filename)
        if error is None:
            accepted.append(candidate)
        else:
            errors.append(error)

    if errors:
        logger.info(
            f"Filename validation rejected {len(errors)} file(s), "
            f"accepted {len(accepted)}, skipped {skipped}"
        )
    else:
        logger.debug(f"Filename validation accepted {len(accepted)} file(s), skipped {skipped}")

    return ValidationResult(accepted, errors)


def validate_filenames(filenames: Iterable[str]) -> ValidationResult:
    """Convenience wrapper around :func:`validate_files` for bare names."""
    return validate_files(CandidateFile(name) for name in filenames)
