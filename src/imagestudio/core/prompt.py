"""Plain-text prompt rendering for an :class:`~imagestudio.core.job.ImageJob`.

The rendered document has fixed sections so that the same job always yields
byte-identical text, which keeps the UI preview and the dispatched prompt in
sync::

    ACTION: OUTFIT_SWAP

    INPUT_FILES:
    - FACE: face_01.png
    - POSE: pose_a.png
    - OUTFIT: outfit_1.png, outfit_2.png
    - OBJECT: -

    SETTINGS:
    - Model: openai-image
    - Gender: Female (default)
    ...

    MAPPING:
    - image_1: pose=pose_a.png outfit=outfit_1.png

    INSTRUCTIONS:
    Follow the System Context strictly. ...
"""

from __future__ import annotations

from .job import ImageJob
from .roles import Role

EMPTY_PLACEHOLDER = "-"
UNSET_TOKEN = "auto"
DEFAULT_GENDER = "Female (default)"
DEFAULT_LOCATION = "Neutral studio (default)"

_INSTRUCTIONS = (
    "INSTRUCTIONS:\n"
    "Follow the System Context strictly. Reject execution immediately if any filename "
    "validation fails. Do not infer or guess missing roles."
)


def render_prompt(job: ImageJob) -> str:
    """Serialise *job* into the instruction text sent with every request.

    Args:
        job: The job to render.

    Returns:
        Newline-joined prompt text.
    """
    settings = job.settings
    lines: list[str] = [f"ACTION: {job.action.value}", "", "INPUT_FILES:"]

    for role in Role:
        names = ", ".join(job.files[role])
        lines.append(f"- {role.value}: {names or EMPTY_PLACEHOLDER}")

    lines += [
        "",
        "SETTINGS:",
        f"- Model: {settings.model.value}",
        f"- Gender: {settings.gender if settings.gender is not None else DEFAULT_GENDER}",
        f"- Location: {settings.location if settings.location is not None else DEFAULT_LOCATION}",
        f"- Aspect Ratio: {settings.aspect_ratio.value}",
        f"- Output Count: {settings.output_count}",
    ]
    if settings.style:
        lines.append(f"- Image Style: {settings.style}")

    lines += ["", "MAPPING:"]
    for item in job.mapping:
        pose = item.pose if item.pose is not None else UNSET_TOKEN
        outfit = item.outfit if item.outfit is not None else UNSET_TOKEN
        lines.append(f"- image_{item.image_index}: pose={pose} outfit={outfit}")

    lines += ["", _INSTRUCTIONS]
    return "\n".join(lines)


def with_strict_rules(prompt: str, include_object: bool = False) -> str:
    """Append the per-request STRICT RULES block used at dispatch time."""
    rules = [
        "- Keep the exact camera angle and pose from the POSE reference.",
        "- Keep the same facial identity from the FACE reference.",
        "- Apply the OUTFIT reference exactly.",
    ]
    if include_object:
        rules.append("- Include the OBJECT reference and match how it is held.")
    rules.append("- No extra fingers/limbs, no distorted labels.")
    return prompt + "\n\nSTRICT RULES:\n" + "\n".join(rules) + "\n"
