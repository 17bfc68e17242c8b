"""Unit tests for the API request models."""

import pytest
from pydantic import ValidationError

from imagestudio.api.models import (
    GenerateRequest,
    JobPayload,
    JobRequest,
    MappingItemModel,
    SelectionModel,
    SettingsModel,
)
from imagestudio.core.job import Action, AspectRatio, ModelId, build_job
from imagestudio.core.mapping import MappingItem, PoseMode
from imagestudio.core.roles import Role
from imagestudio.core.selection import MapMode, RefSelection, SelectMode


class TestSettingsModel:
    """Tests for SettingsModel."""

    def test_defaults(self):
        settings = SettingsModel().to_settings()
        assert settings.model is ModelId.OPENAI_IMAGE
        assert settings.aspect_ratio is AspectRatio.PORTRAIT
        assert settings.output_count == 1

    @pytest.mark.parametrize("value, expected", [(0, 1), (-5, 1), (None, 1), (4, 4), ("3", 3), (11, 10), (2_000_000, 10)])
    def test_output_count_clamped(self, value, expected):
        assert SettingsModel(output_count=value).output_count == expected

    def test_aspect_ratio_by_value(self):
        assert SettingsModel(aspect_ratio="4:5").aspect_ratio is AspectRatio.PORTRAIT_4_5

    def test_unknown_aspect_ratio_rejected(self):
        with pytest.raises(ValidationError):
            SettingsModel(aspect_ratio="3:2")

    def test_unknown_model_rejected(self):
        with pytest.raises(ValidationError):
            SettingsModel(model="dall-e")


class TestMappingItemModel:
    def test_to_item(self):
        assert MappingItemModel(image_index=2, pose="p").to_item() == MappingItem(2, "p", None)

    def test_index_must_be_positive(self):
        with pytest.raises(ValidationError):
            MappingItemModel(image_index=0)


class TestJobRequest:
    """Tests for JobRequest."""

    def test_defaults(self):
        req = JobRequest()
        assert req.filenames == []
        assert req.action is Action.OUTFIT_SWAP
        assert req.pose_mode is PoseMode.FIRST
        assert req.mapping is None
        assert req.selections is None

    def test_selections_keyed_by_role(self):
        req = JobRequest(
            selections={"OUTFIT": {"mode": "MULTIPLE", "selected": ["o1"], "map_mode": "ROTATE"}}
        )
        selection = req.selections[Role.OUTFIT].to_selection()
        assert selection == RefSelection(SelectMode.MULTIPLE, ("o1",), MapMode.ROTATE)

    def test_unknown_role_rejected(self):
        with pytest.raises(ValidationError):
            JobRequest(selections={"HAIR": {}})

    def test_unknown_action_rejected(self):
        with pytest.raises(ValidationError):
            JobRequest(action="REMIX")


class TestJobPayload:
    """Tests for JobPayload round trip into the core job."""

    def test_to_job(self, grouped, settings, action):
        job = build_job(action, grouped, settings)
        payload = JobPayload.model_validate(job.to_dict())

        assert payload.to_job() == job

    def test_minimal_payload(self):
        job = JobPayload(action="LOOKBOOK").to_job()
        assert job.action is Action.LOOKBOOK
        assert job.mapping == ()
        assert job.files.face == ()


def test_selection_model_defaults():
    assert SelectionModel().to_selection() == RefSelection()


def test_generate_request_defaults():
    req = GenerateRequest()
    assert req.prompt == ""
    assert req.n == 1
    assert req.aspect_ratio == "9:16"
    assert req.quality is None
