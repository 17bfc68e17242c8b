"""Core job construction for the Image Studio.

The core turns a list of uploaded reference files into a validated job and
prompt.  Everything except :mod:`~imagestudio.core.dispatch`,
:mod:`~imagestudio.core.openai_client` and :mod:`~imagestudio.core.imaging`
is pure and synchronous.

Pipeline Overview
-----------------
1. **Validation** (validation.py): ignore rules, extension allow-list,
   duplicate-extension check and role classification.
2. **Grouping** (grouping.py): accepted files bucketed per role and sorted
   by filename.  Any validation error blocks grouping (reject mode).
3. **Mapping** (mapping.py, selection.py): per-output pose/outfit
   assignment, either automatic or derived from the user's selections.
4. **Job** (job.py): immutable job assembled from groups, settings and
   mapping.
5. **Prompt** (prompt.py): deterministic plain-text rendering of the job.
6. **Dispatch** (dispatch.py): one image API request per mapping item.

Usage Example
-------------
    from imagestudio.core import (
        Action, JobSettings, build_job, group_if_valid, render_prompt,
        validate_filenames,
    )

    result = validate_filenames(["face.png", "pose_a.png", "outfit_1.jpg"])
    grouped = group_if_valid(result)
    job = build_job(Action.OUTFIT_SWAP, grouped, JobSettings(output_count=3))
    print(render_prompt(job))
"""

from imagestudio.core.grouping import GroupedFiles, group_by_role, group_if_valid
from imagestudio.core.job import Action, AspectRatio, ImageJob, JobSettings, ModelId, build_job
from imagestudio.core.mapping import MappingItem, PoseMode, auto_mapping
from imagestudio.core.prompt import render_prompt
from imagestudio.core.roles import Role, detect_roles
from imagestudio.core.validation import (
    CandidateFile,
    FileValidationError,
    RejectionReason,
    ValidationError,
    ValidationResult,
    validate_filenames,
    validate_files,
)

__all__ = [
    "Action",
    "AspectRatio",
    "CandidateFile",
    "FileValidationError",
    "GroupedFiles",
    "ImageJob",
    "JobSettings",
    "MappingItem",
    "ModelId",
    "PoseMode",
    "RejectionReason",
    "Role",
    "ValidationError",
    "ValidationResult",
    "auto_mapping",
    "build_job",
    "detect_roles",
    "group_by_role",
    "group_if_valid",
    "render_prompt",
    "validate_filenames",
    "validate_files",
]
