"""Image Studio - role-based reference image jobs for AI image generation."""

__version__ = "0.1.0"

from imagestudio.core.job import ImageJob, build_job
from imagestudio.core.prompt import render_prompt
from imagestudio.core.validation import validate_files

__all__ = [
    "ImageJob",
    "build_job",
    "render_prompt",
    "validate_files",
]
