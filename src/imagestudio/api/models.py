"""Pydantic request models for the Image Studio API.

These models define the JSON schema for every API endpoint.  FastAPI uses
them for automatic request validation, serialisation, and OpenAPI
documentation generation.  Each model that carries job data converts itself
into the immutable core dataclasses via a ``to_*`` method.

Models
------
ValidateRequest
    Payload for ``POST /api/validate`` - a list of filenames.
JobRequest
    Payload for ``POST /api/job`` - filenames plus action, settings and the
    mapping mode.
JobPayload
    A previously built job, sent back as JSON with ``POST /api/generate-ref``.
SelectionUpdateRequest
    Payload for ``POST /api/selection`` - one selection mode change or
    filename toggle.
GenerateRequest
    Payload for ``POST /api/generate`` - prompt-only generation.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from imagestudio.core.config import config
from imagestudio.core.grouping import GroupedFiles
from imagestudio.core.job import Action, AspectRatio, ImageJob, JobSettings, ModelId, clamp_output_count
from imagestudio.core.mapping import MappingItem, PoseMode
from imagestudio.core.roles import Role
from imagestudio.core.selection import MapMode, RefSelection, SelectMode


class SettingsModel(BaseModel):
    """Generation settings.

    ``output_count`` is clamped to ``1..max_outputs`` rather than rejected,
    so the job builder always receives a count it can serve.
    """

    model: ModelId = Field(default=ModelId.OPENAI_IMAGE)
    gender: str | None = Field(default=None, description="Free-text gender of the subject.")
    location: str | None = Field(default=None, description="Free-text scene location.")
    aspect_ratio: AspectRatio = Field(default=AspectRatio.PORTRAIT)
    output_count: int = Field(default=1, description="Number of images (clamped to 1..max_outputs).")
    style: str | None = Field(default=None, description="Optional image style line.")

    @field_validator("output_count", mode="before")
    @classmethod
    def _clamp_output_count(cls, value):
        return clamp_output_count(value, config.max_outputs)

    def to_settings(self) -> JobSettings:
        return JobSettings(
            model=self.model,
            aspect_ratio=self.aspect_ratio,
            output_count=self.output_count,
            gender=self.gender,
            location=self.location,
            style=self.style,
        )


class MappingItemModel(BaseModel):
    image_index: int = Field(..., ge=1, description="1-based output index.")
    pose: str | None = None
    outfit: str | None = None

    def to_item(self) -> MappingItem:
        return MappingItem(self.image_index, self.pose, self.outfit)


class SelectionModel(BaseModel):
    mode: SelectMode = SelectMode.SINGLE
    selected: list[str] = Field(default_factory=list)
    map_mode: MapMode = MapMode.FIRST

    def to_selection(self) -> RefSelection:
        return RefSelection(self.mode, tuple(self.selected), self.map_mode)


class SelectionUpdateRequest(BaseModel):
    """Request body for ``POST /api/selection``.

    Attributes:
        role: Role the selection belongs to.
        selection: Current selection state.
        available: Sorted filenames of the role, as returned in ``grouped``.
        mode: New selection mode, applied first when given.
        toggle: Filename to add to or remove from the selection.
    """

    role: Role
    selection: SelectionModel = Field(default_factory=SelectionModel)
    available: list[str] = Field(default_factory=list)
    mode: SelectMode | None = None
    toggle: str | None = None


class ValidateRequest(BaseModel):
    """Request body for ``POST /api/validate``.

    Attributes:
        filenames: Filenames in upload order.  Only names are inspected.
    """

    filenames: list[str] = Field(default_factory=list)


class JobRequest(BaseModel):
    """Request body for ``POST /api/job``.

    Attributes:
        filenames: Filenames in upload order.
        action: Batch action.
        settings: Generation settings.
        pose_mode: Pose strategy for the automatic mapping.
        mapping: Explicit mapping; when non-empty it is used verbatim.
        selections: Per-role reference selections keyed by role name.  When
            given (and ``mapping`` is empty) the pose and outfit selections
            produce the mapping.  Missing roles use their default selection.
    """

    filenames: list[str] = Field(default_factory=list)
    action: Action = Field(default=Action.OUTFIT_SWAP)
    settings: SettingsModel = Field(default_factory=SettingsModel)
    pose_mode: PoseMode = Field(default=PoseMode.FIRST)
    mapping: list[MappingItemModel] | None = None
    selections: dict[Role, SelectionModel] | None = None


class FilesModel(BaseModel):
    face: list[str] = Field(default_factory=list)
    pose: list[str] = Field(default_factory=list)
    outfit: list[str] = Field(default_factory=list)
    object: list[str] = Field(default_factory=list)


class JobPayload(BaseModel):
    """A built job as returned by ``POST /api/job``."""

    action: Action
    files: FilesModel = Field(default_factory=FilesModel)
    settings: SettingsModel = Field(default_factory=SettingsModel)
    mapping: list[MappingItemModel] = Field(default_factory=list)

    def to_job(self) -> ImageJob:
        return ImageJob(
            action=self.action,
            files=GroupedFiles(
                face=tuple(self.files.face),
                pose=tuple(self.files.pose),
                outfit=tuple(self.files.outfit),
                object=tuple(self.files.object),
            ),
            settings=self.settings.to_settings(),
            mapping=tuple(item.to_item() for item in self.mapping),
        )


class GenerateRequest(BaseModel):
    """Request body for ``POST /api/generate`` (prompt-only generation).

    Attributes:
        model: Model identifier; only ``openai-image`` is supported.
        prompt: Prompt text.
        n: Number of images, clamped server-side to ``1..max_outputs``.
        aspect_ratio: Aspect ratio; unknown values fall back to ``auto`` size.
        quality: Quality tier; defaults to the configured tier.
    """

    model: str | None = None
    prompt: str = ""
    n: int = 1
    aspect_ratio: str = "9:16"
    quality: str | None = None
