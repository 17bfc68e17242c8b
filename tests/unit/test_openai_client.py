"""Unit tests for the image API client.

The HTTP session is a mock, so no network access is needed.
"""

from unittest.mock import MagicMock

import pytest

from imagestudio.core.config import StudioConfig
from imagestudio.core.openai_client import ImageAPIError, OpenAIImageClient


def _response(status_code=200, body=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.headers = {"x-request-id": "req_123"}
    response.text = text
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body if body is not None else {}
    return response


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(test_config, session):
    return OpenAIImageClient(test_config, session=session)


class TestClientSetup:
    """Tests for client construction."""

    def test_requires_api_key(self):
        with pytest.raises(ImageAPIError, match="API_KEY"):
            OpenAIImageClient(StudioConfig(_env_file=None, openai_api_key=None))

    def test_trailing_slash_stripped(self, client):
        assert client.base_url == "https://images.example.test/v1"


class TestGenerate:
    """Tests for prompt-only generation."""

    def test_posts_json_body(self, client, session):
        session.post.return_value = _response(body={"data": [{"b64_json": "AAA"}, {"b64_json": "BBB"}]})

        payloads = client.generate(prompt="a cat", n=2, size="1024x1024", quality="low")

        assert payloads == ["AAA", "BBB"]
        args, kwargs = session.post.call_args
        assert args[0] == "https://images.example.test/v1/images/generations"
        assert kwargs["headers"] == {"Authorization": "Bearer test-key"}
        assert kwargs["json"] == {
            "model": "gpt-image-1",
            "prompt": "a cat",
            "n": 2,
            "size": "1024x1024",
            "quality": "low",
        }
        assert kwargs["timeout"] == 5.0

    def test_error_status(self, client, session):
        session.post.return_value = _response(status_code=429, text="rate limited")

        with pytest.raises(ImageAPIError) as exc_info:
            client.generate(prompt="x")

        assert exc_info.value.status_code == 429
        assert "req_123" in str(exc_info.value)
        assert "rate limited" in str(exc_info.value)

    def test_non_json_body(self, client, session):
        session.post.return_value = _response(body=ValueError("bad json"))
        with pytest.raises(ImageAPIError, match="Unexpected"):
            client.generate(prompt="x")

    def test_missing_data_is_empty(self, client, session):
        session.post.return_value = _response(body={})
        assert client.generate(prompt="x") == []


class TestEdit:
    """Tests for reference-based generation."""

    def test_multipart_request(self, client, session):
        session.post.return_value = _response(body={"data": [{"b64_json": "IMG"}]})

        b64 = client.edit(
            prompt="p",
            images=[("face_main.jpg", b"f"), ("pose_01.webp", b"p")],
            size="1024x1536",
            quality="low",
            input_fidelity="high",
        )

        assert b64 == "IMG"
        args, kwargs = session.post.call_args
        assert args[0] == "https://images.example.test/v1/images/edits"
        assert kwargs["data"] == {
            "model": "gpt-image-1",
            "prompt": "p",
            "size": "1024x1536",
            "quality": "low",
            "output_format": "png",
            "n": "1",
            "input_fidelity": "high",
        }
        assert kwargs["files"] == [
            ("image[]", ("face_main.png", b"f", "image/png")),
            ("image[]", ("pose_01.png", b"p", "image/png")),
        ]

    def test_input_fidelity_omitted(self, client, session):
        session.post.return_value = _response(body={"data": [{"b64_json": "IMG"}]})
        client.edit(prompt="p", images=[("face.png", b"f")])
        assert "input_fidelity" not in session.post.call_args.kwargs["data"]

    def test_empty_data_raises(self, client, session):
        session.post.return_value = _response(body={"data": []})
        with pytest.raises(ImageAPIError, match="no image data"):
            client.edit(prompt="p", images=[("face.png", b"f")])

    def test_malformed_item(self, client, session):
        session.post.return_value = _response(body={"data": [{"url": "https://x"}]})
        with pytest.raises(ImageAPIError):
            client.edit(prompt="p", images=[("face.png", b"f")])
