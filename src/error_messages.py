"""
Error message definitions for the Spreadsheet Preview MCP Server
Provides natural language error messages that are easy for AI agents to understand
"""

from enum import Enum


class ErrorCategory(Enum):
    """Error category definitions"""

    FETCH = "fetch"
    PARSE = "parse"
    UNSUPPORTED_FILE = "unsupported_file"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


class SpreadsheetError(Exception):
    """Custom exception class for spreadsheet preview operations"""

    def __init__(
        self,
        category: ErrorCategory,
        message: str,
        solution: str,
        original_error: Exception | None = None,
    ):
        self.category = category
        self.message = message
        self.solution = solution
        self.original_error = original_error
        super().__init__(self.get_formatted_message())

    def get_formatted_message(self) -> str:
        """Get formatted error message for AI agents"""
        return f"{self.message} {self.solution}"

    def to_dict(self) -> dict[str, str]:
        """Serialize the error for tool responses"""
        return {
            "category": self.category.value,
            "message": self.message,
            "solution": self.solution,
        }


class FetchError(SpreadsheetError):
    """The spreadsheet bytes could not be fetched (network, HTTP status, bad URL)"""


class ParseError(SpreadsheetError):
    """The fetched bytes are not a recognizable spreadsheet container"""


def get_fetch_error(url: str | None, original_error: Exception) -> FetchError:
    """Generate fetch error message"""
    error_str = str(original_error).lower()
    target = f": {url}" if url else "."

    status_code = None
    response = getattr(original_error, "response", None)
    if response is not None and hasattr(response, "status_code"):
        status_code = response.status_code

    if status_code == 404 or "not found" in error_str:
        return FetchError(
            category=ErrorCategory.FETCH,
            message=f"The spreadsheet file was not found{target}",
            solution="Please verify the file reference is correct or select the document again to obtain an updated path.",
            original_error=original_error,
        )
    elif status_code in (401, 403) or "forbidden" in error_str:
        return FetchError(
            category=ErrorCategory.FETCH,
            message=f"Access to the spreadsheet file was denied{target}",
            solution="Please check that the object storage URL is publicly readable or that the pre-authenticated link has not expired.",
            original_error=original_error,
        )
    elif status_code is not None and status_code >= 500:
        return FetchError(
            category=ErrorCategory.FETCH,
            message=f"The storage server returned an error (HTTP {status_code}).",
            solution="Please try opening the document again after a few moments.",
            original_error=original_error,
        )
    elif "timeout" in error_str or "timed out" in error_str:
        return FetchError(
            category=ErrorCategory.FETCH,
            message="Downloading the spreadsheet timed out.",
            solution="Please check your network connection or try opening the document again.",
            original_error=original_error,
        )
    elif "connection" in error_str:
        return FetchError(
            category=ErrorCategory.FETCH,
            message="Could not connect to the storage server.",
            solution="Please verify your internet connection and the object storage base URL.",
            original_error=original_error,
        )
    else:
        return FetchError(
            category=ErrorCategory.FETCH,
            message=f"Unable to load the spreadsheet file{target}",
            solution="Please try opening the document again.",
            original_error=original_error,
        )


def get_parse_error(original_error: Exception) -> ParseError:
    """Generate parse error message"""
    return ParseError(
        category=ErrorCategory.PARSE,
        message="Unable to load spreadsheet data.",
        solution="The file does not look like a valid .xlsx or .xls workbook. Download the original file to open it in a spreadsheet application.",
        original_error=original_error,
    )


def get_unsupported_file_error(
    file_ref: str | None, original_error: Exception | None = None
) -> SpreadsheetError:
    """Generate unsupported file error message"""
    if file_ref:
        message = f"This file cannot be previewed: {file_ref}"
    else:
        message = "No previewable file was selected."
    return SpreadsheetError(
        category=ErrorCategory.UNSUPPORTED_FILE,
        message=message,
        solution="Only spreadsheet files (.xlsx, .xls) stored in object storage, referenced by an https URL, or embedded as a data URL can be previewed.",
        original_error=original_error,
    )


def get_configuration_error(original_error: Exception) -> SpreadsheetError:
    """Generate configuration error message"""
    return SpreadsheetError(
        category=ErrorCategory.CONFIGURATION,
        message="There is a problem with the spreadsheet preview configuration.",
        solution="Please check the environment variable settings and ensure all required configuration items are correctly set.",
        original_error=original_error,
    )


def get_unknown_error(original_error: Exception) -> SpreadsheetError:
    """Generate unknown error message"""
    return SpreadsheetError(
        category=ErrorCategory.UNKNOWN,
        message="An unexpected error occurred.",
        solution="Please try again or contact your administrator.",
        original_error=original_error,
    )


def handle_spreadsheet_error(
    error: Exception, context: str = "", url: str | None = None
) -> SpreadsheetError:
    """
    Classify spreadsheet-related errors into appropriate categories and generate natural language messages

    Args:
        error: The exception that occurred
        context: The context where the error occurred ("fetch", "parse", "resolve", etc.)
        url: The URL being processed (optional, used in messages)

    Returns:
        SpreadsheetError: Natural language error message
    """
    if isinstance(error, SpreadsheetError):
        return error

    error_str = str(error).lower()

    if context == "fetch":
        return get_fetch_error(url, error)
    elif context == "parse":
        return get_parse_error(error)
    elif context == "resolve":
        return get_unsupported_file_error(url, error)

    # Classification by HTTP status code
    if hasattr(error, "response") and hasattr(error.response, "status_code"):
        return get_fetch_error(url, error)

    # Classification by error message content
    if any(
        keyword in error_str for keyword in ["timeout", "connection", "network", "dns"]
    ):
        return get_fetch_error(url, error)
    elif any(
        keyword in error_str
        for keyword in ["zip", "not a valid", "unsupported format", "xlrd", "bof"]
    ):
        return get_parse_error(error)
    elif any(
        keyword in error_str
        for keyword in ["config", "validation", "missing", "required"]
    ):
        return get_configuration_error(error)
    else:
        return get_unknown_error(error)
