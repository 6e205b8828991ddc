import pytest
from unittest.mock import Mock
import requests

from src.error_messages import (
    ErrorCategory,
    FetchError,
    ParseError,
    SpreadsheetError,
    get_unsupported_file_error,
    handle_spreadsheet_error,
)


def make_http_error(status_code: int) -> requests.HTTPError:
    mock_response = Mock()
    mock_response.status_code = status_code
    http_error = requests.HTTPError(f"{status_code} Error")
    http_error.response = mock_response
    return http_error


class TestHandleSpreadsheetError:
    """handle_spreadsheet_error 関数のテスト"""

    @pytest.mark.unit
    def test_http_error_404(self):
        """404 Not Found エラーのテスト"""
        result = handle_spreadsheet_error(
            make_http_error(404), "fetch", url="https://host/o/a.xlsx"
        )

        assert isinstance(result, FetchError)
        assert result.category == ErrorCategory.FETCH
        assert "not found" in str(result).lower()
        assert "https://host/o/a.xlsx" in str(result)

    @pytest.mark.unit
    @pytest.mark.parametrize("status_code", [401, 403])
    def test_http_error_access_denied(self, status_code):
        result = handle_spreadsheet_error(make_http_error(status_code), "fetch")

        assert "denied" in str(result).lower()

    @pytest.mark.unit
    def test_http_error_500(self):
        result = handle_spreadsheet_error(make_http_error(503), "fetch")

        assert "HTTP 503" in str(result)

    @pytest.mark.unit
    def test_http_error_without_context(self):
        """コンテキストが無くてもHTTPエラーは取得エラーに分類されること"""
        result = handle_spreadsheet_error(make_http_error(404))

        assert isinstance(result, FetchError)

    @pytest.mark.unit
    def test_connection_error(self):
        """接続エラーのテスト"""
        result = handle_spreadsheet_error(requests.ConnectionError("Connection failed"))

        assert isinstance(result, FetchError)
        assert "connect" in str(result).lower()

    @pytest.mark.unit
    def test_timeout_error(self):
        result = handle_spreadsheet_error(requests.Timeout("Request timeout"), "fetch")

        assert "timed out" in str(result).lower()

    @pytest.mark.unit
    def test_parse_context(self):
        original = ValueError("bad data")
        result = handle_spreadsheet_error(original, "parse")

        assert isinstance(result, ParseError)
        assert result.message == "Unable to load spreadsheet data."
        assert result.original_error is original

    @pytest.mark.unit
    def test_parse_keywords(self):
        """メッセージ内容から解析エラーに分類されること"""
        result = handle_spreadsheet_error(Exception("File is not a zip file"))

        assert isinstance(result, ParseError)

    @pytest.mark.unit
    def test_resolve_context(self):
        result = handle_spreadsheet_error(
            ValueError("bad path"), "resolve", url="notes.txt"
        )

        assert result.category == ErrorCategory.UNSUPPORTED_FILE
        assert "notes.txt" in result.message

    @pytest.mark.unit
    def test_configuration_error(self):
        result = handle_spreadsheet_error(ValueError("config validation failed"))

        assert result.category == ErrorCategory.CONFIGURATION

    @pytest.mark.unit
    def test_unknown_error(self):
        """未知のエラーのテスト"""
        result = handle_spreadsheet_error(Exception("Something strange"))

        assert result.category == ErrorCategory.UNKNOWN
        assert "unexpected" in str(result).lower()

    @pytest.mark.unit
    def test_spreadsheet_error_passthrough(self):
        """既に分類済みのエラーはそのまま返されること"""
        error = get_unsupported_file_error("a.pdf")

        assert handle_spreadsheet_error(error, "fetch") is error


class TestSpreadsheetError:
    """SpreadsheetError クラスのテスト"""

    @pytest.mark.unit
    def test_formatted_message(self):
        error = SpreadsheetError(
            category=ErrorCategory.FETCH,
            message="Fetch failed.",
            solution="Try again.",
        )

        assert str(error) == "Fetch failed. Try again."
        assert error.get_formatted_message() == "Fetch failed. Try again."

    @pytest.mark.unit
    def test_to_dict(self):
        error = get_unsupported_file_error(None)

        assert error.to_dict() == {
            "category": "unsupported_file",
            "message": "No previewable file was selected.",
            "solution": error.solution,
        }
