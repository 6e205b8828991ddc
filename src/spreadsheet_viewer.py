"""
スプレッドシートプレビューのセッション管理モジュール

取得 → 解析 → 描画を1回のリクエストとして実行し、
後から発行されたリクエストの結果だけを表示状態に反映する
"""

import logging
import threading
from dataclasses import dataclass, replace
from typing import Literal

from src.config import config
from src.error_messages import (
    ParseError,
    SpreadsheetError,
    get_unsupported_file_error,
    handle_spreadsheet_error,
)
from src.excel.grid_renderer import (
    DEFAULT_DOWNLOAD_FILENAME,
    DownloadArtifact,
    GridRenderer,
    TableView,
    download_filename,
)
from src.excel.models import Workbook
from src.excel.workbook_parser import WorkbookParser
from src.spreadsheet_loader import SpreadsheetLoader

logger = logging.getLogger(__name__)

ViewerStatus = Literal["idle", "loading", "ready", "error"]


@dataclass(frozen=True, slots=True)
class ViewerState:
    """プレビューの表示状態（リクエストごとのスナップショット）"""

    status: ViewerStatus = "idle"
    request_id: int = 0
    url: str | None = None
    label: str | None = None
    download_name: str = DEFAULT_DOWNLOAD_FILENAME
    source: bytes | None = None
    workbook: Workbook | None = None
    table: TableView | None = None
    error: SpreadsheetError | None = None
    fallback_html: str | None = None
    # 後続のリクエストに置き換えられ、表示状態に反映されなかった
    stale: bool = False

    @property
    def can_download(self) -> bool:
        return self.source is not None


class SpreadsheetViewer:
    """
    スプレッドシートプレビューのセッション

    open()のたびに単調増加のリクエスト番号を発行し、取得・解析の完了時点で
    その番号が最新でなければ結果を破棄する（発行順で最後のリクエストが勝つ）
    """

    def __init__(
        self,
        loader: SpreadsheetLoader | None = None,
        parser: WorkbookParser | None = None,
        renderer: GridRenderer | None = None,
    ):
        self.loader = loader or SpreadsheetLoader()
        self.parser = parser or WorkbookParser()
        self.renderer = renderer or GridRenderer(theme_fallback=config.theme_fallback)
        self._lock = threading.Lock()
        self._sequence = 0
        self._state = ViewerState()

    @property
    def state(self) -> ViewerState:
        with self._lock:
            return self._state

    @property
    def current_request_id(self) -> int:
        with self._lock:
            return self._sequence

    def open(self, url: str | None, label: str | None = None) -> ViewerState:
        """
        ドキュメントを開いてプレビューを生成

        取得・解析の失敗は例外にせず、error状態として返す

        Args:
            url: 取得可能なURL（URL解決でNoneになった場合は「プレビュー不可」）
            label: 表示名

        Returns:
            このリクエストの処理後の状態。途中で後続のリクエスト（またはclose）が
            発行された場合は、表示状態には反映せずstale=Trueを付けて返す
        """
        request_id, state = self._begin(url, label)

        if url is None:
            error = get_unsupported_file_error(label)
            return self._apply(request_id, state, status="error", error=error)

        # 1. 取得
        try:
            content = self.loader.load(url)
        except Exception as e:
            error = handle_spreadsheet_error(e, "fetch", url=url)
            state = self._apply(request_id, state, status="error", error=error)
            if not state.stale:
                logger.warning(f"Spreadsheet preview failed (request {request_id}): {error}")
            return state

        # 解析前に元のバイト列を保持（解析に失敗してもダウンロードは可能）
        state = self._apply(request_id, state, source=content)
        if state.stale:
            return state

        # 2. 解析・描画
        try:
            workbook = self.parser.parse(content)
            table = self.renderer.render(workbook)
        except Exception as e:
            error = e if isinstance(e, SpreadsheetError) else handle_spreadsheet_error(e)
            if isinstance(error, ParseError):
                logger.warning(f"Spreadsheet could not be parsed (request {request_id}): {error}")
            else:
                logger.error(f"Spreadsheet preview failed (request {request_id}): {error}")
            return self._apply(
                request_id,
                state,
                status="error",
                error=error,
                fallback_html=self.renderer.render_fallback(state.download_name),
            )

        state = self._apply(request_id, state, status="ready", workbook=workbook, table=table)
        if not state.stale:
            logger.info(
                f"Spreadsheet preview ready (request {request_id}, sheet={table.sheet_name})"
            )
        return state

    def close(self) -> None:
        """
        ビューアを閉じる

        処理中のリクエストは完了しても反映されない（エラーにもしない）
        """
        with self._lock:
            self._sequence += 1
            self._state = ViewerState(request_id=self._sequence)
        logger.info("Spreadsheet viewer closed")

    def download(self) -> DownloadArtifact | None:
        """
        現在のドキュメントの元ファイルを返す（取得したバイト列そのもの）

        Returns:
            DownloadArtifact。取得済みのファイルが無い場合はNone
        """
        state = self.state
        if state.source is None:
            return None
        return DownloadArtifact(filename=state.download_name, content=state.source)

    def _begin(self, url: str | None, label: str | None) -> tuple[int, ViewerState]:
        """新しいリクエスト番号を発行し、表示状態をloadingにする"""
        with self._lock:
            self._sequence += 1
            request_id = self._sequence
            state = ViewerState(
                status="loading",
                request_id=request_id,
                url=url,
                label=label,
                download_name=download_filename(url),
            )
            self._state = state
        logger.info(f"Opening spreadsheet (request {request_id}): {label or url}")
        return request_id, state

    def _apply(self, request_id: int, state: ViewerState, **changes) -> ViewerState:
        """
        リクエスト自身の状態を更新し、最新のリクエストの場合のみ表示状態に反映

        Returns:
            更新後のリクエストの状態（破棄した場合はstale=True）
        """
        updated = replace(state, **changes)
        with self._lock:
            if request_id != self._sequence:
                logger.info(
                    f"Discarding stale spreadsheet result (request {request_id}, current {self._sequence})"
                )
                return replace(updated, stale=True)
            self._state = updated
            return updated
