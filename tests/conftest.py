"""Shared pytest fixtures for Image Studio tests."""

import io
from typing import Generator
from unittest.mock import MagicMock

import pytest
from PIL import Image

from imagestudio.core.config import StudioConfig
from imagestudio.core.grouping import GroupedFiles, group_by_role
from imagestudio.core.job import Action, AspectRatio, JobSettings, ModelId


@pytest.fixture
def test_config() -> StudioConfig:
    """Create a test configuration that ignores the environment and .env.

    Returns:
        StudioConfig instance for testing
    """
    return StudioConfig(
        _env_file=None,
        openai_api_key="test-key",
        openai_base_url="https://images.example.test/v1/",
        image_model="gpt-image-1",
        request_timeout=5.0,
    )


@pytest.fixture
def sample_filenames() -> list[str]:
    """A folder listing with every role present and a few ignored files.

    Returns:
        Filenames in "upload" order (deliberately unsorted)
    """
    return [
        "outfit_b.jpg",
        "face_main.png",
        ".DS_Store",
        "pose_02.png",
        "outfit_a.jpg",
        "notes.txt",
        "pose_01.webp",
        "outfit_c.jpeg",
        "prop_bag.png",
        "Thumbs.db",
    ]


@pytest.fixture
def grouped(sample_filenames) -> GroupedFiles:
    """Grouped files for the sample folder.

    Returns:
        GroupedFiles with FACE=1, POSE=2, OUTFIT=3, OBJECT=1
    """
    return group_by_role(
        name for name in sample_filenames if name.lower().endswith((".png", ".jpg", ".jpeg", ".webp"))
    )


@pytest.fixture
def settings() -> JobSettings:
    """Typical settings for a five-image outfit swap.

    Returns:
        JobSettings instance
    """
    return JobSettings(
        model=ModelId.OPENAI_IMAGE,
        aspect_ratio=AspectRatio.PORTRAIT,
        output_count=5,
        gender="Female",
        location="Modern bedroom",
    )


@pytest.fixture
def action() -> Action:
    return Action.OUTFIT_SWAP


@pytest.fixture
def png_bytes() -> bytes:
    """A tiny valid PNG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), (200, 50, 50)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def jpeg_bytes() -> bytes:
    """A tiny valid JPEG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), (10, 120, 200)).save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
def mock_image_client() -> MagicMock:
    """Image API client double returning a fixed base64 payload per call."""
    client = MagicMock()
    client.edit.return_value = "aW1hZ2U="
    client.generate.side_effect = lambda *, prompt, n, size, quality: ["aW1hZ2U="] * n
    return client


@pytest.fixture
def test_client(mock_image_client) -> Generator:
    """FastAPI TestClient with the image API client replaced by a mock.

    Yields:
        TestClient bound to the application
    """
    from fastapi.testclient import TestClient

    from imagestudio.api.main import app

    with TestClient(app) as client:
        app.state.image_client = mock_image_client
        yield client
