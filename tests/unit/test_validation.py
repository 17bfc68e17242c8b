"""Unit tests for strict filename validation."""

import pytest

from imagestudio.core.roles import Role
from imagestudio.core.validation import (
    CandidateFile,
    FileValidationError,
    RejectionReason,
    ValidationError,
    count_image_extensions,
    has_duplicate_image_extension,
    is_image_file,
    should_ignore_file,
    validate_filenames,
    validate_files,
)


class TestValidationError:
    """Tests for ValidationError exception."""

    def test_validation_error_is_exception(self):
        assert issubclass(ValidationError, Exception)

    def test_validation_error_message(self):
        msg = "Custom validation error"
        with pytest.raises(ValidationError, match=msg):
            raise ValidationError(msg)


class TestIgnoreRule:
    """Tests for should_ignore_file."""

    @pytest.mark.parametrize("name", [".DS_Store", ".ds_store", "Thumbs.db", "THUMBS.DB", "desktop.ini"])
    def test_system_files_ignored(self, name):
        assert should_ignore_file(name) is True

    def test_hidden_files_ignored(self):
        """Any dot-file is ignored, even with a role keyword and image extension."""
        assert should_ignore_file(".face.png") is True

    def test_regular_file_not_ignored(self):
        assert should_ignore_file("face.png") is False


class TestExtensionRules:
    """Tests for extension predicates."""

    @pytest.mark.parametrize("name", ["a.png", "a.JPG", "a.jpeg", "a.WebP"])
    def test_image_extensions(self, name):
        assert is_image_file(name) is True

    @pytest.mark.parametrize("name", ["a.gif", "a.txt", "a.png.txt", "png", "face"])
    def test_non_image_extensions(self, name):
        assert is_image_file(name) is False

    def test_count_single_extension(self):
        assert count_image_extensions("face.jpg") == 1

    def test_count_repeated_extension(self):
        assert count_image_extensions("face.jpg.jpg") == 2

    def test_duplicate_same_extension(self):
        assert has_duplicate_image_extension("face.jpg.jpg") is True

    def test_duplicate_mixed_extensions(self):
        """Different extensions are counted together."""
        assert has_duplicate_image_extension("outfit.jpg.png") is True

    def test_jpeg_counts_once(self):
        """'.jpeg' does not contain the '.jpg' token."""
        assert has_duplicate_image_extension("face.jpeg") is False

    def test_case_insensitive_duplicate(self):
        assert has_duplicate_image_extension("FACE.PNG.png") is True


class TestValidateFiles:
    """Tests for validate_files."""

    def test_single_role_accepted(self):
        result = validate_filenames(["face_01.png"])
        assert [c.filename for c in result.accepted] == ["face_01.png"]
        assert result.errors == []
        assert result.ok is True

    def test_no_role_keyword(self):
        result = validate_filenames(["IMG_0001.jpg"])
        assert result.accepted == []
        assert result.errors == [
            FileValidationError("IMG_0001.jpg", RejectionReason.NO_ROLE_KEYWORD, ())
        ]

    def test_multiple_role_keywords(self):
        result = validate_filenames(["face_pose_outfit.png"])
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.reason is RejectionReason.MULTIPLE_ROLE_KEYWORDS
        assert set(error.detected_roles) == {Role.FACE, Role.POSE, Role.OUTFIT}

    def test_duplicate_extension(self):
        result = validate_filenames(["face.jpg.jpg"])
        assert result.accepted == []
        assert result.errors[0].reason is RejectionReason.DUPLICATE_EXTENSION
        assert result.errors[0].detected_roles == ()

    def test_duplicate_extension_checked_before_roles(self):
        """A name with no keyword but a doubled extension reports the extension."""
        result = validate_filenames(["IMG.png.png"])
        assert result.errors[0].reason is RejectionReason.DUPLICATE_EXTENSION

    def test_ignored_files_produce_nothing(self):
        result = validate_filenames([".DS_Store", "Thumbs.db", "thumbs.DB", "desktop.ini", ".hidden_face.png"])
        assert result.accepted == []
        assert result.errors == []

    def test_non_images_dropped_silently(self):
        """Non-image files are dropped even when they carry no role keyword."""
        result = validate_filenames(["readme.txt", "face.gif"])
        assert result.accepted == []
        assert result.errors == []

    def test_input_order_preserved(self):
        names = ["outfit_b.png", "zzz.png", "face.png", "pose_face.png", "outfit_a.png"]
        result = validate_filenames(names)
        assert [c.filename for c in result.accepted] == ["outfit_b.png", "face.png", "outfit_a.png"]
        assert [e.filename for e in result.errors] == ["zzz.png", "pose_face.png"]

    def test_one_error_per_file(self):
        """A file matching several rules still yields a single error."""
        result = validate_filenames(["face_pose.jpg.jpg"])
        assert len(result.errors) == 1
        assert result.errors[0].reason is RejectionReason.DUPLICATE_EXTENSION

    def test_content_is_carried_through(self):
        candidate = CandidateFile("face.png", b"\x89PNG")
        result = validate_files([candidate])
        assert result.accepted[0] is candidate
        assert result.accepted[0].content == b"\x89PNG"

    def test_empty_input(self):
        result = validate_filenames([])
        assert result.accepted == []
        assert result.errors == []


class TestFileValidationError:
    """Tests for error serialisation and messages."""

    def test_to_dict(self):
        error = FileValidationError(
            "face_pose.png", RejectionReason.MULTIPLE_ROLE_KEYWORDS, (Role.FACE, Role.POSE)
        )
        assert error.to_dict() == {
            "filename": "face_pose.png",
            "reason": "MULTIPLE_ROLE_KEYWORDS",
            "detected_roles": ["FACE", "POSE"],
        }

    def test_messages_per_reason(self):
        no_role = FileValidationError("x.png", RejectionReason.NO_ROLE_KEYWORD)
        dup = FileValidationError("x.png.png", RejectionReason.DUPLICATE_EXTENSION)
        multi = FileValidationError("face_pose.png", RejectionReason.MULTIPLE_ROLE_KEYWORDS, (Role.FACE, Role.POSE))
        assert "No role keyword" in no_role.message()
        assert "extension" in dup.message()
        assert "FACE, POSE" in multi.message()
