"""Image Studio - FastAPI Application.

This module is the single entry point for the web service.  It defines the
FastAPI ``app`` instance, all REST API routes, and the ``main()`` CLI
function that launches the uvicorn server.

Architecture
------------
The service is stateless:

- **Validation, grouping, job building and prompt rendering** are pure core
  functions (:mod:`imagestudio.core`).  The browser only sends filenames to
  ``/api/validate`` and ``/api/job``; file bytes are uploaded once, with
  ``/api/generate-ref``.
- **Image generation** is performed by
  :class:`~imagestudio.core.dispatch.GenerationDispatcher` through an
  :class:`~imagestudio.core.openai_client.OpenAIImageClient` stored on
  ``app.state``.
- **Reject mode**: any filename error blocks job building; the full error
  list is returned so the UI can show one message per file.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
GET       ``/api/config``               Actions, ratios, keywords, defaults
POST      ``/api/validate``             Validate and group filenames
POST      ``/api/job``                  Build the job and render its prompt
POST      ``/api/selection``            Change a reference selection
POST      ``/api/generate``             Prompt-only image generation
POST      ``/api/generate-ref``         Reference-based generation per image
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    imagestudio

Direct invocation::

    python -m imagestudio.api.main
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError as PydanticValidationError
from starlette.concurrency import run_in_threadpool

from imagestudio import __version__
from imagestudio.api.models import (
    GenerateRequest,
    JobPayload,
    JobRequest,
    SelectionUpdateRequest,
    ValidateRequest,
)
from imagestudio.core.config import config
from imagestudio.core.dispatch import GenerationDispatcher, output_filename
from imagestudio.core.grouping import group_if_valid
from imagestudio.core.imaging import ASPECT_RATIO_SIZES, size_for_aspect_ratio
from imagestudio.core.job import ACTION_HELP, DEFAULT_STYLE, Action, AspectRatio, ModelId, build_job
from imagestudio.core.openai_client import ImageAPIError, OpenAIImageClient
from imagestudio.core.prompt import render_prompt
from imagestudio.core.roles import IGNORED_FILENAMES, IMAGE_EXTENSIONS, ROLE_KEYWORDS, Role
from imagestudio.core.selection import change_mode, default_selections, selection_mapping, toggle
from imagestudio.core.validation import ValidationError, ValidationResult, validate_filenames

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Application lifecycle - image API client setup.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the image API client on startup.

    The client is only created when an API key is configured.  Validation
    and job routes work without one; generation routes answer 503.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    if config.openai_api_key:
        app.state.image_client = OpenAIImageClient(config)
        logger.info(f"Image API client ready (model={config.image_model}).")
    else:
        app.state.image_client = None
        logger.warning("IMAGESTUDIO_OPENAI_API_KEY not set; generation routes are disabled.")

    yield


app = FastAPI(
    title="Image Studio",
    description="Role-based reference image jobs for AI image generation.",
    version=__version__,
    lifespan=lifespan,
)

# The browser UI is served separately during development.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Helpers.
# ---------------------------------------------------------------------------


def _validation_payload(result: ValidationResult) -> dict:
    grouped = group_if_valid(result)
    return {
        "ok": result.ok,
        "accepted": [candidate.filename for candidate in result.accepted],
        "errors": [
            {**error.to_dict(), "message": error.message()} for error in result.errors
        ],
        "grouped": grouped.to_dict() if grouped is not None else None,
    }


def _image_client() -> OpenAIImageClient:
    client = getattr(app.state, "image_client", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Image API key is not configured")
    return client


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.get("/api/config")
async def get_config() -> dict:
    """Return the static configuration the frontend needs.

    Returns:
        Dictionary with ``version``, ``actions`` (with help text),
        ``aspect_ratios`` (with output sizes), ``models``, ``role_keywords``,
        ``ignored_filenames``, ``image_extensions`` and ``defaults``.
    """
    return {
        "version": __version__,
        "actions": [{"id": action.value, "help": ACTION_HELP[action]} for action in Action],
        "aspect_ratios": [
            {"id": ratio.value, "size": ASPECT_RATIO_SIZES[ratio.value]} for ratio in AspectRatio
        ],
        "models": [model.value for model in ModelId],
        "role_keywords": {role.value: list(keywords) for role, keywords in ROLE_KEYWORDS},
        "ignored_filenames": sorted(IGNORED_FILENAMES),
        "image_extensions": list(IMAGE_EXTENSIONS),
        "defaults": {
            "action": Action.OUTFIT_SWAP.value,
            "model": ModelId.OPENAI_IMAGE.value,
            "aspect_ratio": AspectRatio.PORTRAIT.value,
            "output_count": 5,
            "style": DEFAULT_STYLE,
            "quality": config.default_quality,
        },
    }


@app.post("/api/validate")
async def validate(req: ValidateRequest) -> dict:
    """Validate filenames and group them by role.

    Returns:
        Dictionary with ``ok``, ``accepted``, ``errors`` (one per rejected
        file, with ``filename``, ``reason``, ``detected_roles`` and
        ``message``) and ``grouped`` (``None`` when any error exists).
    """
    return _validation_payload(validate_filenames(req.filenames))


@app.post("/api/job")
async def create_job(req: JobRequest) -> dict:
    """Build a job and its prompt from filenames and settings.

    The mapping is chosen in this order: a non-empty explicit ``mapping``,
    then the pose/outfit ``selections``, then the automatic mapping for
    ``pose_mode``.

    Returns:
        Dictionary with ``job``, ``prompt`` and ``selections``.

    Raises:
        HTTPException: 422 with the full error list when any filename is
            rejected.
    """
    result = validate_filenames(req.filenames)
    grouped = group_if_valid(result)
    if grouped is None:
        logger.info(f"Rejecting job: {len(result.errors)} invalid filename(s)")
        raise HTTPException(
            status_code=422,
            detail={
                "message": f"{len(result.errors)} invalid filename(s); rename and upload again",
                "errors": _validation_payload(result)["errors"],
            },
        )

    settings = req.settings.to_settings()
    selections = default_selections(grouped)
    if req.selections:
        selections.update({role: sel.to_selection() for role, sel in req.selections.items()})

    explicit = [item.to_item() for item in req.mapping or []]
    if not explicit and req.selections:
        explicit = selection_mapping(selections[Role.POSE], selections[Role.OUTFIT], settings.output_count)
        # Paired outfits can shorten the batch.
        settings = replace(settings, output_count=len(explicit))

    job = build_job(req.action, grouped, settings, explicit_mapping=explicit, pose_mode=req.pose_mode)
    return {
        "job": job.to_dict(),
        "prompt": render_prompt(job),
        "selections": {role.value: sel.to_dict() for role, sel in selections.items()},
    }


@app.post("/api/selection")
async def update_selection(req: SelectionUpdateRequest) -> dict:
    """Apply a mode change and/or a filename toggle to one role's selection.

    The mode change runs first, so switching to MULTIPLE and toggling a
    file can be sent together.

    Returns:
        Dictionary with ``role`` and the new ``selection``.
    """
    selection = req.selection.to_selection()
    if req.mode is not None:
        selection = change_mode(selection, req.mode, req.available, req.role)
    if req.toggle:
        selection = toggle(selection, req.toggle)
    return {"role": req.role.value, "selection": selection.to_dict()}


@app.post("/api/generate")
async def generate(req: GenerateRequest) -> dict:
    """Generate images from a prompt alone.

    Returns:
        Dictionary with ``images``, each ``{"name", "b64", "mime"}``.

    Raises:
        HTTPException: 400 for a missing prompt or unsupported model, 502 when
            the image API fails.
    """
    if not req.prompt.strip():
        raise HTTPException(status_code=400, detail="Missing prompt")
    if req.model and req.model != ModelId.OPENAI_IMAGE.value:
        raise HTTPException(status_code=400, detail=f"Model not supported yet: {req.model}")

    client = _image_client()
    n = min(max(req.n, 1), config.max_outputs)
    try:
        payloads = await run_in_threadpool(
            client.generate,
            prompt=req.prompt,
            n=n,
            size=size_for_aspect_ratio(req.aspect_ratio),
            quality=req.quality or "auto",
        )
    except ImageAPIError as e:
        logger.error(f"Prompt-only generation failed: {e}")
        raise HTTPException(status_code=502, detail=str(e)) from e

    return {
        "images": [
            {"name": output_filename(i), "b64": b64, "mime": "image/png"}
            for i, b64 in enumerate(payloads, start=1)
        ]
    }


@app.post("/api/generate-ref")
async def generate_ref(
    files: list[UploadFile] = File(default=[]),
    job: str = Form(...),
    prompt: str = Form(""),
    quality: str = Form(""),
    face: str = Form(""),
    object_name: str = Form("", alias="object"),
) -> dict:
    """Generate one image per mapping item using uploaded reference files.

    Form fields:
        files: Every accepted reference file, sent with its original name.
        job: The job JSON returned by ``POST /api/job``.
        prompt: The rendered prompt; re-rendered from the job when empty.
        quality: Quality tier; defaults to the configured tier.
        face: Face filename; defaults to the job's first face file.
        object: Optional object filename attached to every request.

    Returns:
        Dictionary with ``images`` and ``failures``, each ordered by image
        index.  Individual image failures do not fail the request.

    Raises:
        HTTPException: 400 for a malformed job or missing references,
            503 when no API key is configured.
    """
    try:
        payload = JobPayload.model_validate(json.loads(job))
    except (json.JSONDecodeError, PydanticValidationError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid job: {e}") from e

    image_job = payload.to_job()
    client = _image_client()

    uploads: dict[str, bytes] = {}
    for upload in files:
        try:
            uploads[upload.filename or ""] = await upload.read()
        finally:
            await upload.close()

    dispatcher = GenerationDispatcher(
        client,
        uploads,
        workers=config.dispatch_workers,
        input_fidelity=config.input_fidelity,
    )
    try:
        result = await run_in_threadpool(
            dispatcher.run,
            image_job,
            prompt or render_prompt(image_job),
            quality=quality or config.default_quality,
            face=face or None,
            object_name=object_name or None,
            limit=config.max_outputs,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return result.to_dict()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~imagestudio.core.config.config`
    (``IMAGESTUDIO_SERVER_HOST``, ``IMAGESTUDIO_SERVER_PORT`` and
    ``IMAGESTUDIO_LOG_LEVEL``).  Defaults to ``0.0.0.0:8787``.

    This function is registered as the ``imagestudio`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "imagestudio.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
