"""Tests for data model validation."""

import pytest

from media_portability.models import (
    ALBUMS_COUNT,
    PHOTOS_COUNT,
    VIDEOS_COUNT,
    Album,
    AuthContext,
    Category,
    ErrorRecord,
    ImportJob,
    ImportResult,
    ImportStatus,
    MediaContainer,
    Photo,
    Video,
)


class TestItems:
    """Test album and media item validation."""

    def test_empty_key_rejected(self) -> None:
        with pytest.raises(ValueError, match="idempotent key"):
            Album(idempotent_key="", title="Trips")
        with pytest.raises(ValueError, match="idempotent key"):
            Photo(idempotent_key="")

    def test_negative_size_rejected(self) -> None:
        with pytest.raises(ValueError, match="negative"):
            Video(idempotent_key="v", size_bytes=-1)

    def test_display_name_falls_back_to_key(self) -> None:
        assert Photo(idempotent_key="p1").display_name == "p1"
        assert Photo(idempotent_key="p1", title="Beach").display_name == "Beach"

    def test_categories(self) -> None:
        assert Album("a", "A").category is Category.ALBUM
        assert Photo("p").category is Category.PHOTO
        assert Video("v").category is Category.VIDEO
        assert [c.count_key for c in Category] == [ALBUMS_COUNT, PHOTOS_COUNT, VIDEOS_COUNT]

    def test_container(self) -> None:
        """Test that containers store tuples and report emptiness."""
        container = MediaContainer(photos=[Photo("p")])

        assert container.photos == (Photo("p"),)
        assert not container.is_empty
        assert MediaContainer().is_empty


class TestJobAndAuth:
    def test_auth_repr_hides_token(self) -> None:
        auth = AuthContext(access_token="secret", url="https://media.example.com")

        assert "secret" not in repr(auth)

    def test_job_requires_id(self) -> None:
        auth = AuthContext(access_token="t", url="https://media.example.com")

        with pytest.raises(ValueError, match="Job id"):
            ImportJob(job_id="", auth=auth)


class TestResults:
    """Test result models."""

    def test_ok_result(self) -> None:
        result = ImportResult.ok()

        assert result.status is ImportStatus.OK
        assert result.is_ok
        assert result.counts == {ALBUMS_COUNT: 0, PHOTOS_COUNT: 0, VIDEOS_COUNT: 0}
        assert result.bytes == 0

    def test_error_result_requires_failure(self) -> None:
        with pytest.raises(ValueError, match="failure message"):
            ImportResult(status=ImportStatus.ERROR)

    def test_copies(self) -> None:
        """Test that copy helpers leave the original untouched."""
        original = ImportResult.ok()
        record = ErrorRecord("p", "Beach", "boom", True)

        failed = (
            original.copy_with_bytes(10)
            .copy_with_counts({PHOTOS_COUNT: 1})
            .copy_with_errors((record,))
            .copy_with_failure("aborted")
        )

        assert failed.status is ImportStatus.ERROR
        assert failed.bytes == 10
        assert failed.counts == {PHOTOS_COUNT: 1}
        assert failed.errors == (record,)
        assert original == ImportResult.ok()

    def test_error_record_dict_round_trip(self) -> None:
        record = ErrorRecord("p", "Beach", "boom", False)

        assert ErrorRecord.from_dict(record.to_dict()) == record
