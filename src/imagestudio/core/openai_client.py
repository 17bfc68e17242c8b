"""HTTP client for the external image generation API.

Only two endpoints are used:

- ``POST {base_url}/images/generations`` for prompt-only generation.
- ``POST {base_url}/images/edits`` with several reference images attached
  as ``image[]`` multipart parts.

Both return base64 payloads; the client hands them back undecoded because
the browser consumes them directly as data URLs.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Sequence

import requests

from .config import StudioConfig

logger = logging.getLogger(__name__)


class ImageAPIError(RuntimeError):
    """The image API answered with an error status or an unusable body."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class OpenAIImageClient:
    """Thin wrapper over the image API using ``requests``.

    Attributes:
        api_key: Bearer token sent with every call.
        base_url: API root without trailing slash.
        model: Image model name.
        timeout: Per-request timeout in seconds.
    """

    def __init__(self, config: StudioConfig, session: requests.Session | None = None) -> None:
        if not config.openai_api_key:
            raise ImageAPIError("IMAGESTUDIO_OPENAI_API_KEY is not set")

        self.api_key = config.openai_api_key
        self.base_url = config.openai_base_url.rstrip("/")
        self.model = config.image_model
        self.timeout = config.request_timeout
        self._session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    @staticmethod
    def _payloads(response: requests.Response) -> list[str]:
        if response.status_code >= 400:
            request_id = response.headers.get("x-request-id")
            raise ImageAPIError(
                f"Image API error status={response.status_code} "
                f"request_id={request_id} body={response.text}",
                status_code=response.status_code,
            )
        try:
            data = response.json().get("data") or []
            return [item["b64_json"] for item in data]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise ImageAPIError(f"Unexpected image API response: {e}") from e

    def generate(self, *, prompt: str, n: int = 1, size: str = "auto", quality: str = "auto") -> list[str]:
        """Generate ``n`` images from a text prompt.

        Returns:
            Base64-encoded PNG payloads.
        """
        body: dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "n": n,
            "size": size,
            "quality": quality,
        }
        logger.debug(f"Requesting {n} generated image(s), size={size}")
        response = self._session.post(
            f"{self.base_url}/images/generations",
            headers=self._headers(),
            json=body,
            timeout=self.timeout,
        )
        return self._payloads(response)

    def edit(
        self,
        *,
        prompt: str,
        images: Sequence[tuple[str, bytes]],
        size: str = "auto",
        quality: str = "auto",
        input_fidelity: str | None = None,
    ) -> str:
        """Generate one image conditioned on several reference images.

        Args:
            prompt: Full instruction text.
            images: ``(filename, png_bytes)`` pairs, attached in order.
            size: Output size such as ``"1024x1536"`` or ``"auto"``.
            quality: Quality tier.
            input_fidelity: Optional reference fidelity (``"high"``/``"low"``).

        Returns:
            Base64-encoded PNG payload.

        Raises:
            ImageAPIError: On HTTP errors or an empty response.
        """
        data: dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "size": size,
            "quality": quality,
            "output_format": "png",
            "n": "1",
        }
        if input_fidelity:
            data["input_fidelity"] = input_fidelity

        # Filenames end in .png so the API derives the right content type.
        files = [
            ("image[]", (f"{Path(name).stem}.png", content, "image/png")) for name, content in images
        ]

        logger.debug(f"Requesting edit with {len(images)} reference image(s), size={size}")
        response = self._session.post(
            f"{self.base_url}/images/edits",
            headers=self._headers(),
            data=data,
            files=files,
            timeout=self.timeout,
        )
        payloads = self._payloads(response)
        if not payloads:
            raise ImageAPIError("Image API returned no image data")
        return payloads[0]
