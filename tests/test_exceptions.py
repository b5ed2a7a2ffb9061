"""Tests for the exception hierarchy and upload statistics."""

import time

import pytest

from tus_client.client.stats import UploadStats
from tus_client.exceptions import (
    BadRequestError,
    ChecksumMismatchError,
    EmptyFilenameError,
    FileReadError,
    FileTooLargeError,
    InvalidHeaderError,
    InvalidOffsetError,
    MissingHeaderError,
    MissingUploadUrlError,
    OffsetConflictError,
    TusCommunicationError,
    TusEncodingError,
    TusError,
    TusTransportError,
    TusUploadFailed,
    TusValidationError,
    UnequalSizeError,
    UnexpectedStatusCodeError,
    UploadNotFoundError,
)


class TestExceptions:
    """Test custom exception classes."""

    def test_tus_communication_error_basic(self):
        """Test TusCommunicationError with basic message."""
        error = TusCommunicationError("Test error")
        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.status_code is None
        assert error.response_content is None
        assert error.meta is None

    def test_tus_communication_error_full(self):
        """Test TusCommunicationError with all parameters."""
        error = TusCommunicationError(
            "Test error", status_code=500, response_content=b"Server error"
        )
        assert error.message == "Test error"
        assert error.status_code == 500
        assert error.response_content == b"Server error"
        assert error.response_text == "Server error"

    def test_tus_communication_error_default_message(self):
        """Test TusCommunicationError with default message."""
        error = TusCommunicationError(None, status_code=404)
        assert "404" in str(error)
        assert error.status_code == 404

    def test_default_message_from_docstring(self):
        assert "Missing upload URL" in str(MissingUploadUrlError())

    @pytest.mark.parametrize(
        "error_class",
        [
            BadRequestError,
            UploadNotFoundError,
            OffsetConflictError,
            FileTooLargeError,
            ChecksumMismatchError,
            UnexpectedStatusCodeError,
            TusUploadFailed,
        ],
    )
    def test_protocol_errors(self, error_class):
        assert issubclass(error_class, TusCommunicationError)
        assert issubclass(error_class, TusError)

    def test_validation_and_encoding_errors_are_value_errors(self):
        for error_class in (FileReadError, EmptyFilenameError, InvalidHeaderError):
            assert issubclass(error_class, ValueError)
        assert issubclass(FileReadError, TusValidationError)
        assert issubclass(InvalidHeaderError, TusEncodingError)

    def test_transport_error_is_not_protocol_error(self):
        assert not issubclass(TusTransportError, TusCommunicationError)

    def test_missing_header(self):
        error = MissingHeaderError("Upload-Offset")
        assert error.header == "Upload-Offset"
        assert str(error) == "Missing required header: Upload-Offset"

    def test_offset_errors(self):
        error = InvalidOffsetError(64, 32, 128)
        assert (error.previous, error.reported, error.size) == (64, 32, 128)
        assert isinstance(error, TusUploadFailed)
        error = UnequalSizeError(128, 99)
        assert "128" in str(error) and "99" in str(error)

    def test_meta_can_be_attached(self):
        error = OffsetConflictError("conflict", status_code=409)
        error.meta = "snapshot"
        assert error.meta == "snapshot"


class TestUploadStats:
    """Test UploadStats dataclass."""

    def test_init(self):
        stats = UploadStats(total_bytes=1000)
        assert stats.uploaded_bytes == 0
        assert stats.chunks_completed == 0
        assert stats.start_time > 0

    def test_progress_percent(self):
        assert UploadStats(total_bytes=1000).progress_percent == 0.0
        assert UploadStats(total_bytes=1000, uploaded_bytes=250).progress_percent == 25.0
        assert UploadStats(total_bytes=0).progress_percent == 100.0

    def test_upload_speed_counts_this_call_only(self):
        stats = UploadStats(
            total_bytes=1000,
            uploaded_bytes=600,
            initial_bytes=500,
            start_time=time.time() - 1,
        )
        assert 0 < stats.upload_speed <= 100
        assert stats.eta_seconds > 0

    def test_no_speed_without_progress(self):
        stats = UploadStats(total_bytes=1000, start_time=time.time() - 1)
        assert stats.upload_speed == 0.0
        assert stats.eta_seconds == 0.0
