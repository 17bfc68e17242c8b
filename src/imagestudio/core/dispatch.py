"""Dispatch of a built job to the image API.

:class:`GenerationDispatcher` is the bridge between the pure job description
and the external API.  For every mapping item it:

1. resolves the face, pose, outfit and optional object filenames to the
   uploaded bytes,
2. normalises each reference to PNG (once per file),
3. issues one edit request with the job prompt plus the strict rules block.

Role sufficiency is enforced here, not in the job builder: a face reference
is required, and every mapping item needs both a pose and an outfit.  A
filename that was never uploaded raises :class:`MissingUploadError` before any
request is sent.

Requests run one at a time by default.  With ``workers > 1`` they run in a
bounded thread pool; results are still returned in ``image_index`` order and
a failing image is reported in ``failures`` without discarding the images
that succeeded.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Mapping

import requests

from .imaging import size_for_aspect_ratio, to_png
from .job import ImageJob
from .openai_client import ImageAPIError, OpenAIImageClient
from .prompt import with_strict_rules
from .validation import ValidationError

logger = logging.getLogger(__name__)

PNG_MIME = "image/png"


class MissingUploadError(ValidationError):
    """A job references a filename that was not part of the upload."""

    pass


def output_filename(image_index: int) -> str:
    """Return ``image_NN.png`` for a 1-based output index."""
    return f"image_{image_index:02d}.png"


@dataclass(frozen=True)
class GeneratedImage:
    image_index: int
    name: str
    b64: str
    pose: str | None = None
    outfit: str | None = None
    mime: str = PNG_MIME

    def to_dict(self) -> dict:
        return {
            "image_index": self.image_index,
            "name": self.name,
            "b64": self.b64,
            "mime": self.mime,
            "pose": self.pose,
            "outfit": self.outfit,
        }


@dataclass(frozen=True)
class DispatchFailure:
    image_index: int
    name: str
    error: str

    def to_dict(self) -> dict:
        return {"image_index": self.image_index, "name": self.name, "error": self.error}


@dataclass
class DispatchResult:
    """Outcome of a dispatch run, both lists ordered by ``image_index``."""

    images: list[GeneratedImage] = field(default_factory=list)
    failures: list[DispatchFailure] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "images": [image.to_dict() for image in self.images],
            "failures": [failure.to_dict() for failure in self.failures],
        }


@dataclass(frozen=True)
class _Task:
    image_index: int
    pose: str
    outfit: str
    references: tuple[tuple[str, bytes], ...]


class GenerationDispatcher:
    """Send one edit request per mapping item of a job.

    Attributes:
        client: Image API client.
        uploads: Uploaded bytes keyed by original filename.
        workers: Maximum concurrent requests.
    """

    def __init__(
        self,
        client: OpenAIImageClient,
        uploads: Mapping[str, bytes],
        workers: int = 1,
        input_fidelity: str | None = "high",
    ) -> None:
        self.client = client
        self.uploads = uploads
        self.workers = max(1, workers)
        self.input_fidelity = input_fidelity
        self._png_cache: dict[str, bytes] = {}

    # -- Reference resolution -----------------------------------------------

    def _reference(self, filename: str) -> tuple[str, bytes]:
        if filename not in self._png_cache:
            if filename not in self.uploads:
                raise MissingUploadError(f"Missing uploaded file: {filename}")
            self._png_cache[filename] = to_png(self.uploads[filename], filename)
        return filename, self._png_cache[filename]

    def plan(
        self,
        job: ImageJob,
        face: str | None = None,
        object_name: str | None = None,
        limit: int | None = None,
    ) -> list[_Task]:
        """Resolve every mapping item into a ready-to-send task.

        Args:
            job: The job to dispatch.
            face: Face filename; defaults to the job's first face file.
            object_name: Optional object filename attached to every request.
            limit: Maximum number of mapping items to dispatch.

        Returns:
            Tasks in mapping order.

        Raises:
            ValidationError: If no face is available, the mapping is empty,
                or an item lacks a pose or an outfit.
            MissingUploadError: If a referenced file was not uploaded.
        """
        face = face or (job.files.face[0] if job.files.face else None)
        if not face:
            raise ValidationError("Please select a FACE reference")

        mapping = list(job.mapping[:limit] if limit is not None else job.mapping)
        if not mapping:
            raise ValidationError("The job has no mapping items to generate")

        tasks: list[_Task] = []
        for item in mapping:
            if not item.pose or not item.outfit:
                raise ValidationError(
                    f"image_{item.image_index} needs both a POSE and an OUTFIT reference"
                )
            references = [self._reference(face), self._reference(item.pose), self._reference(item.outfit)]
            if object_name:
                references.append(self._reference(object_name))
            tasks.append(_Task(item.image_index, item.pose, item.outfit, tuple(references)))
        return tasks

    # -- Execution ----------------------------------------------------------

    def _run_one(self, task: _Task, prompt: str, size: str, quality: str) -> GeneratedImage | DispatchFailure:
        name = output_filename(task.image_index)
        try:
            b64 = self.client.edit(
                prompt=prompt,
                images=task.references,
                size=size,
                quality=quality,
                input_fidelity=self.input_fidelity,
            )
        except (ImageAPIError, requests.RequestException) as e:
            logger.error(f"Generation failed for {name}: {e}")
            return DispatchFailure(task.image_index, name, str(e))
        except Exception as e:
            # Other images in the batch must still be reported.
            logger.exception(f"Unexpected error generating {name}")
            return DispatchFailure(task.image_index, name, f"{type(e).__name__}: {e}")

        logger.info(f"Generated {name} (pose={task.pose}, outfit={task.outfit})")
        return GeneratedImage(task.image_index, name, b64, pose=task.pose, outfit=task.outfit)

    def run(
        self,
        job: ImageJob,
        prompt: str,
        *,
        quality: str = "low",
        face: str | None = None,
        object_name: str | None = None,
        limit: int | None = None,
    ) -> DispatchResult:
        """Generate every image of *job*.

        Args:
            job: The job to dispatch.
            prompt: Rendered job prompt; strict rules are appended per request.
            quality: Quality tier for every request.
            face: Face filename override.
            object_name: Optional object filename.
            limit: Maximum number of images.

        Returns:
            :class:`DispatchResult` with successes and failures in index order.
        """
        tasks = self.plan(job, face=face, object_name=object_name, limit=limit)
        full_prompt = with_strict_rules(prompt, include_object=bool(object_name))
        size = size_for_aspect_ratio(job.settings.aspect_ratio.value)

        logger.info(f"Dispatching {len(tasks)} image(s) at size {size} with {self.workers} worker(s)")

        if self.workers == 1:
            outcomes = [self._run_one(task, full_prompt, size, quality) for task in tasks]
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                # map() yields in submission order, which is image_index order.
                outcomes = list(
                    pool.map(lambda task: self._run_one(task, full_prompt, size, quality), tasks)
                )

        result = DispatchResult()
        for outcome in outcomes:
            if isinstance(outcome, GeneratedImage):
                result.images.append(outcome)
            else:
                result.failures.append(outcome)
        return result
