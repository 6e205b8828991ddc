import base64
import logging
import sys
from typing import Any

from fastmcp import FastMCP

from src.config import config
from src.error_messages import (
    SpreadsheetError,
    get_unsupported_file_error,
    handle_spreadsheet_error,
)
from src.excel.grid_renderer import download_filename
from src.file_url import file_extension, resolve_file_url
from src.spreadsheet_loader import SpreadsheetLoader
from src.spreadsheet_viewer import SpreadsheetViewer, ViewerState

# MCPサーバーインスタンスを作成
mcp = FastMCP(name="SpreadsheetPreviewMCP")

# ビューアのグローバルインスタンス
_viewer: SpreadsheetViewer | None = None


def setup_logging():
    """
    すべてのログ出力をstderrに向けるロギングを設定します。
    これにより、stdioトランスポートのstdoutが汚染されるのを防ぎます。
    """
    log_formatter = logging.Formatter("%(asctime)s [%(levelname)s] - %(message)s")
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)

    # stdoutへの出力を防ぐため、既存のハンドラをクリア
    root_logger.handlers.clear()

    # stderrにログを出力するハンドラを追加
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(log_formatter)
    root_logger.addHandler(stream_handler)

    logging.info("Logging configured to output to stderr.")


def _get_viewer() -> SpreadsheetViewer:
    """ビューアを取得または初期化"""
    global _viewer

    if _viewer is None:
        # 設定の検証（初回のみ）
        validation_errors = config.validate()
        if validation_errors:
            error_msg = "Spreadsheet preview configuration is invalid: " + "; ".join(
                validation_errors
            )
            logging.error(error_msg)
            raise ValueError(error_msg)

        _viewer = SpreadsheetViewer(
            loader=SpreadsheetLoader(timeout=config.fetch_timeout)
        )
        logging.info("Spreadsheet viewer initialized successfully")

    return _viewer


def _build_preview_response(
    state: ViewerState, response_format: str
) -> dict[str, Any]:
    """表示状態をツールのレスポンスに変換"""
    result: dict[str, Any] = {
        "status": state.status,
        "request_id": state.request_id,
        "label": state.label,
        "download": {
            "available": state.can_download,
            "filename": state.download_name,
        },
    }

    if state.workbook is not None:
        result["sheet_names"] = state.workbook.sheet_names

    if state.table is not None:
        result["sheet_name"] = state.table.sheet_name
        result["range"] = state.table.range.ref
        if response_format == "rows":
            result["rows"] = state.table.to_dict()["rows"]
        else:
            result["html"] = state.table.to_html()

    # 後続のプレビューに置き換えられたリクエスト
    if state.stale:
        result["stale"] = True

    # nullでない場合のみ追加
    if state.error is not None:
        result["error"] = state.error.to_dict()
    if state.fallback_html is not None:
        result["fallback_html"] = state.fallback_html

    return result


def spreadsheet_preview(
    file_ref: str,
    label: str | None = None,
    response_format: str = "html",
) -> dict[str, Any]:
    """
    Preview the first sheet of a spreadsheet as a styled table

    Args:
        file_ref: Object storage path, https URL or data URL of the spreadsheet
        label: Display label of the document (optional)
        response_format: Response format - "html" (default) or "rows"

    Returns:
        Preview result. Contains:
        - status: "ready" or "error"
        - sheet_name / range / html (or rows) when the spreadsheet was rendered
        - error / fallback_html when it could not be loaded
        - stale: true when another preview was opened before this one finished.
          The result then describes only this request and is not the current preview
    """
    logging.info(f"Previewing spreadsheet: '{label or file_ref}'")

    # Validate response_format parameter
    valid_formats = ["html", "rows"]
    if response_format not in valid_formats:
        logging.warning(
            f"Invalid response_format '{response_format}'. Defaulting to 'html'"
        )
        response_format = "html"

    viewer = _get_viewer()

    url = resolve_file_url(file_ref)

    # 拡張子が判別できるURLは許可された拡張子のみ
    extension = file_extension(url)
    if url is not None and extension and extension not in config.allowed_file_extensions:
        logging.warning(f"File extension '{extension}' is not previewable")
        url = None

    state = viewer.open(url, label=label or file_ref)

    logging.info(
        f"Spreadsheet preview completed with status '{state.status}' (request {state.request_id})"
    )
    return _build_preview_response(state, response_format)


def spreadsheet_download(file_ref: str) -> dict[str, Any]:
    """
    Download the original spreadsheet file

    Args:
        file_ref: Object storage path, https URL or data URL of the spreadsheet

    Returns:
        filename, size and the unmodified file content (Base64 encoded)
    """
    logging.info(f"Downloading spreadsheet: {file_ref}")

    viewer = _get_viewer()

    try:
        url = resolve_file_url(file_ref)
        if url is None:
            raise get_unsupported_file_error(file_ref)

        # プレビュー中のドキュメントは取得済みのバイト列をそのまま返す
        # （URLとバイト列は同じスナップショットから読む）
        state = viewer.state
        if state.url == url and state.source is not None:
            file_content = state.source
            filename = state.download_name
        else:
            file_content = viewer.loader.load(url)
            filename = download_filename(url)

        # Base64エンコードして返す
        encoded_content = base64.b64encode(file_content).decode("utf-8")

        logging.info(f"Spreadsheet download completed. Size: {len(file_content)} bytes")
        return {
            "filename": filename,
            "size": len(file_content),
            "content_base64": encoded_content,
        }

    except SpreadsheetError:
        raise
    except Exception as e:
        logging.error(f"Spreadsheet download failed: {str(e)}")
        raise handle_spreadsheet_error(e, "fetch", url=file_ref) from e


def register_tools():
    """Register MCP tools"""
    mcp.tool(description=config.preview_tool_description)(spreadsheet_preview)
    mcp.tool(description=config.download_tool_description)(spreadsheet_download)
