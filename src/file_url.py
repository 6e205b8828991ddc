"""
ファイル参照のURL解決モジュール

オブジェクトストレージ（OCI）のパス・https URL・data URLを取得可能なURLに変換する
"""

import logging
import re
from urllib.parse import quote

from src.config import SpreadsheetPreviewConfig, config

logger = logging.getLogger(__name__)

# フォーム送信などで文字列化された「値なし」
EMPTY_REFERENCES = {"", "null", "undefined"}

EXTENSION_PATTERN = re.compile(r"\.([^./?#]+)(?:[?#]|$)")


def is_object_path(path: str | None) -> bool:
    """オブジェクトストレージのパスかどうか（完全URL・data URLはFalse）"""
    if not path:
        return False
    if path.startswith("https://") or path.startswith("data:"):
        return False
    return True


def resolve_file_url(
    object_path: str | None,
    settings: SpreadsheetPreviewConfig | None = None,
) -> str | None:
    """
    ファイル参照を取得可能なURLに変換

    Args:
        object_path: オブジェクトパス（例: "documents/1700000000-report.xlsx"）、
            https URL、またはdata URL
        settings: 設定（省略時はグローバル設定）

    Returns:
        取得可能なURL。プレビューできない参照の場合はNone
    """
    settings = settings or config

    if object_path is None or object_path.strip() in EMPTY_REFERENCES:
        return None

    # 既に完全なURL・data URLの場合はそのまま返す
    if not is_object_path(object_path):
        return object_path

    if not settings.has_object_storage:
        logger.warning(
            "Object storage is not configured. Please set SPREADSHEET_OCI_BASE_URL, "
            "SPREADSHEET_OCI_NAMESPACE and SPREADSHEET_OCI_BUCKET"
        )
        return None

    # オブジェクト名は "/" も含めてエンコードする
    encoded_object_name = quote(object_path, safe="")
    return f"{settings.oci_container_url}/o/{encoded_object_name}"


def file_extension(url: str | None) -> str:
    """
    URLからファイル拡張子を取得（小文字、判別できない場合は空文字）

    Examples:
        - "https://host/o/report.XLSX?version=2" -> "xlsx"
        - "data:application/vnd.ms-excel;base64,..." -> ""
    """
    if not url or url.startswith("data:"):
        return ""
    match = EXTENSION_PATTERN.search(url)
    return match.group(1).lower() if match else ""
