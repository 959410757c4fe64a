import httpx

from gateway.services.result import Result


class TestResultSuccess:
    def test_success_creates_ok_result(self):
        result = Result.success("reply text")
        assert result.ok is True
        assert result.value == "reply text"
        assert result.error is None

    def test_success_may_carry_none(self):
        result = Result.success(None)
        assert result.ok is True
        assert result.value is None


class TestResultFailure:
    def test_failure_creates_not_ok_result(self):
        result = Result.failure("Media download failed", "media_fetch_failed")
        assert result.ok is False
        assert result.error == "Media download failed"
        assert result.error_code == "media_fetch_failed"
        assert result.value is None

    def test_failure_default_code(self):
        result = Result.failure("Error message")
        assert result.error_code == "unknown"


class TestResultFromException:
    def test_uses_exception_message(self):
        result = Result.from_exception(ValueError("bad payload"), "extraction_failed")
        assert result.ok is False
        assert result.error == "bad payload"
        assert result.error_code == "extraction_failed"

    def test_falls_back_to_exception_name(self):
        result = Result.from_exception(httpx.ReadTimeout(""), "media_fetch_failed")
        assert result.error == "ReadTimeout"
