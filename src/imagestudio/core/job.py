"""Job description assembly.

An :class:`ImageJob` is the immutable description of one generation batch:
which action to perform, the reference filenames per role, the user
settings, and the per-output mapping.  Jobs are never patched; any change to
files, settings or selections produces a fresh job via :func:`build_job`.

:func:`build_job` is a pure assembler.  It does not check that the action
makes sense for the roles present; role sufficiency is enforced by
:mod:`imagestudio.core.dispatch` at the point of sending requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from .grouping import GroupedFiles
from .mapping import MappingItem, PoseMode, auto_mapping
from .validation import ValidationError


class Action(str, Enum):
    OUTFIT_SWAP = "OUTFIT_SWAP"
    POSE_VARIATION = "POSE_VARIATION"
    LOOKBOOK = "LOOKBOOK"
    PRODUCT_SHOOT = "PRODUCT_SHOOT"
    CUSTOM_MAPPING = "CUSTOM_MAPPING"


class AspectRatio(str, Enum):
    PORTRAIT = "9:16"
    LANDSCAPE = "16:9"
    SQUARE = "1:1"
    PORTRAIT_4_5 = "4:5"


class ModelId(str, Enum):
    GOOGLE_IMAGEN = "google-imagen"
    OPENAI_IMAGE = "openai-image"


ACTION_HELP: dict[Action, str] = {
    Action.OUTFIT_SWAP: "Swap through several outfits while keeping the same person, pose and scene.",
    Action.POSE_VARIATION: "Vary pose or camera angle while keeping the same face and outfit.",
    Action.LOOKBOOK: "Build several looks by pairing outfits and poses into sets.",
    Action.PRODUCT_SHOOT: "Focus on the product (object), for reviews or product photography.",
    Action.CUSTOM_MAPPING: "Choose per image which face, pose, outfit and object to use.",
}

DEFAULT_STYLE = "Photorealistic, Ultra High Fidelity, Cinema Quality"


def clamp_output_count(value: int | None, maximum: int | None = None) -> int:
    """Clamp a requested output count to ``1..maximum``.

    Args:
        value: Requested count; ``None`` or anything below 1 becomes 1.
        maximum: Optional upper bound.

    Returns:
        The clamped count.
    """
    count = max(1, int(value or 1))
    if maximum is not None:
        count = min(count, maximum)
    return count


@dataclass(frozen=True)
class JobSettings:
    """User-controlled generation settings."""

    model: ModelId = ModelId.OPENAI_IMAGE
    aspect_ratio: AspectRatio = AspectRatio.PORTRAIT
    output_count: int = 1
    gender: str | None = None
    location: str | None = None
    style: str | None = None

    def validate(self) -> None:
        """Validate settings.

        Raises:
            ValidationError: If ``output_count`` is not a positive integer.
        """
        if self.output_count < 1:
            raise ValidationError(f"Output count must be at least 1, got {self.output_count}")

    def to_dict(self) -> dict:
        return {
            "model": self.model.value,
            "gender": self.gender,
            "location": self.location,
            "aspect_ratio": self.aspect_ratio.value,
            "output_count": self.output_count,
            "style": self.style,
        }


@dataclass(frozen=True)
class ImageJob:
    """Complete, immutable description of one generation batch."""

    action: Action
    files: GroupedFiles
    settings: JobSettings
    mapping: tuple[MappingItem, ...] = field(default=())

    def to_dict(self) -> dict:
        """Return a JSON-serialisable representation for previews and transport."""
        return {
            "action": self.action.value,
            "files": self.files.to_dict(),
            "settings": self.settings.to_dict(),
            "mapping": [item.to_dict() for item in self.mapping],
        }


def build_job(
    action: Action,
    grouped: GroupedFiles,
    settings: JobSettings,
    explicit_mapping: Sequence[MappingItem] | None = None,
    pose_mode: PoseMode = PoseMode.FIRST,
) -> ImageJob:
    """Assemble an :class:`ImageJob`.

    A non-empty *explicit_mapping* is used verbatim and is not re-validated.
    Otherwise the mapping is generated by
    :func:`~imagestudio.core.mapping.auto_mapping` for
    ``settings.output_count`` outputs.

    Args:
        action: What the batch should do.
        grouped: Role buckets; their order is preserved in the job.
        settings: Generation settings.
        explicit_mapping: Caller-supplied mapping (custom mode).
        pose_mode: Pose strategy for the auto mapping.

    Returns:
        The assembled job.

    Raises:
        ValidationError: If the settings are invalid.
    """
    settings.validate()

    if explicit_mapping:
        mapping = tuple(explicit_mapping)
    else:
        mapping = tuple(auto_mapping(grouped, settings.output_count, pose_mode))

    return ImageJob(
        action=Action(action),
        files=grouped,
        settings=settings,
        mapping=mapping,
    )
