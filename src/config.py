"""
設定管理モジュール
"""

import os
import re

from dotenv import load_dotenv

# .envファイルを読み込み
load_dotenv()

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


class SpreadsheetPreviewConfig:
    """スプレッドシートプレビュー設定クラス"""

    def __init__(self):
        # オブジェクトストレージ（OCI）設定
        self.oci_base_url = os.getenv(
            "SPREADSHEET_OCI_BASE_URL", ""
        )  # https://<tenancy>.objectstorage.<region>.oci.customer-oci.com
        self.oci_namespace = os.getenv("SPREADSHEET_OCI_NAMESPACE", "")
        self.oci_bucket = os.getenv("SPREADSHEET_OCI_BUCKET", "")

        # ダウンロード設定
        self.fetch_timeout_raw = os.getenv("SPREADSHEET_FETCH_TIMEOUT", "60")

        # テーマカラー解決失敗時の色（空文字で「色なし」）
        self.theme_fallback_color = os.getenv(
            "SPREADSHEET_THEME_FALLBACK_COLOR", "#000000"
        )

        self.allowed_file_extensions = self._parse_file_extensions(
            os.getenv("SPREADSHEET_ALLOWED_FILE_EXTENSIONS", "xlsx,xls")
        )

        # ツール説明文のカスタマイズ
        self.preview_tool_description = os.getenv(
            "SPREADSHEET_PREVIEW_TOOL_DESCRIPTION",
            "Preview the first sheet of a spreadsheet (.xlsx/.xls) as a styled table. Use response_format='rows' for structured cell data instead of HTML. If another preview is opened before this one finishes, the result is marked stale=true and may be incomplete; call the tool again to preview that file.",
        )
        self.download_tool_description = os.getenv(
            "SPREADSHEET_DOWNLOAD_TOOL_DESCRIPTION",
            "Download the original spreadsheet file without modification",
        )

    @property
    def fetch_timeout(self) -> float:
        """ダウンロードのタイムアウト秒数（不正値の場合はデフォルト60秒）"""
        try:
            timeout = float(self.fetch_timeout_raw)
        except ValueError:
            return 60.0
        return timeout if timeout > 0 else 60.0

    @property
    def theme_fallback(self) -> str | None:
        """未知のテーマIDに使う色（空文字の場合はNone = 色を設定しない）"""
        color = self.theme_fallback_color.strip()
        if not color:
            return None
        return color.upper()

    @property
    def oci_container_url(self) -> str:
        """バケットのURLを取得（base_urlに /n/ と /b/ が含まれる場合はそのまま使用）"""
        base_url = self.oci_base_url.rstrip("/")
        if "/n/" in base_url and "/b/" in base_url:
            return base_url
        return f"{base_url}/n/{self.oci_namespace}/b/{self.oci_bucket}"

    @property
    def has_object_storage(self) -> bool:
        """オブジェクトストレージのパス解決が可能かどうか"""
        return bool(self.oci_base_url and self.oci_namespace and self.oci_bucket)

    def _parse_file_extensions(self, extensions_str: str) -> list[str]:
        """ファイル拡張子文字列をリストに変換"""
        if not extensions_str:
            return []
        return [
            ext.strip().lower().lstrip(".")
            for ext in extensions_str.split(",")
            if ext.strip()
        ]

    def validate(self) -> list[str]:
        """設定の検証を行い、エラーメッセージのリストを返す"""
        errors = []

        try:
            if float(self.fetch_timeout_raw) <= 0:
                errors.append("SPREADSHEET_FETCH_TIMEOUT must be a positive number")
        except ValueError:
            errors.append(
                f"SPREADSHEET_FETCH_TIMEOUT is not a number: {self.fetch_timeout_raw}"
            )

        fallback = self.theme_fallback_color.strip()
        if fallback and not HEX_COLOR_PATTERN.match(fallback):
            errors.append(
                f"SPREADSHEET_THEME_FALLBACK_COLOR must be '#RRGGBB' or empty: {fallback}"
            )

        if not self.allowed_file_extensions:
            errors.append("SPREADSHEET_ALLOWED_FILE_EXTENSIONS must not be empty")

        return errors

    @property
    def is_valid(self) -> bool:
        """設定が有効かどうかを返す"""
        return len(self.validate()) == 0


# グローバル設定インスタンス
config = SpreadsheetPreviewConfig()
