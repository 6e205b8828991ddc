"""
スプレッドシート取得モジュール
"""

import base64
import binascii
import logging
from urllib.parse import unquote_to_bytes

import requests

from src.config import config as global_config
from src.error_messages import handle_spreadsheet_error

logger = logging.getLogger(__name__)


class SpreadsheetLoader:
    """解決済みURLからファイルのバイト列を取得するクライアント（キャッシュ・リトライなし）"""

    def __init__(self, timeout: float | None = None, session: requests.Session | None = None):
        self.timeout = timeout if timeout is not None else global_config.fetch_timeout
        self.session = session or requests.Session()

    def load(self, url: str) -> bytes:
        """
        ファイルを取得

        Args:
            url: 取得可能なURL（https URL または data URL）

        Returns:
            ファイルの内容（bytes）

        Raises:
            FetchError: ネットワークエラー、HTTPエラー、不正なURLの場合
        """
        logger.info(f"Fetching spreadsheet: {_describe(url)}")

        try:
            if url.startswith("data:"):
                content = self._decode_data_url(url)
            elif url.startswith("https://") or url.startswith("http://"):
                content = self._download(url)
            else:
                raise ValueError(f"Unsupported URL scheme: {_describe(url)}")

            logger.info(f"Fetched {len(content)} bytes")
            return content

        except Exception as e:
            logger.error(f"Spreadsheet fetch failed: {str(e)}")
            raise handle_spreadsheet_error(e, "fetch", url=_describe(url)) from e

    def _download(self, url: str) -> bytes:
        headers = {"Accept": "application/octet-stream"}  # ファイルバイナリを要求
        response = self.session.get(url, headers=headers, timeout=self.timeout)
        response.raise_for_status()
        return response.content

    @staticmethod
    def _decode_data_url(url: str) -> bytes:
        """
        data URLをデコード

        Examples:
            - "data:application/vnd.ms-excel;base64,0M8R4K..." -> base64デコード
            - "data:text/plain,hello%20world" -> パーセントデコード
        """
        header, separator, payload = url.partition(",")
        if not separator:
            raise ValueError("Malformed data URL: missing ',' separator")

        if header.endswith(";base64"):
            try:
                return base64.b64decode(payload, validate=True)
            except binascii.Error as e:
                raise ValueError(f"Malformed data URL: invalid base64 payload ({e})") from e

        return unquote_to_bytes(payload)


def _describe(url: str) -> str:
    """ログ用にURLを短縮（data URLのペイロードは出力しない）"""
    if url.startswith("data:"):
        return url.split(",", 1)[0] + ",..."
    return url

