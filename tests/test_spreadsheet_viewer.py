import threading
from unittest.mock import Mock

import pytest

from src.error_messages import ErrorCategory, FetchError, ParseError
from src.excel import GridRenderer, WorkbookParser
from src.spreadsheet_loader import SpreadsheetLoader
from src.spreadsheet_viewer import SpreadsheetViewer, ViewerState


def make_viewer(loader):
    return SpreadsheetViewer(
        loader=loader, parser=WorkbookParser(), renderer=GridRenderer()
    )


class TestSpreadsheetViewer:
    """SpreadsheetViewer（プレビューセッション）のテスト"""

    def setup_method(self):
        """テストメソッド実行前のセットアップ"""
        self.mock_loader = Mock(spec=SpreadsheetLoader)
        self.viewer = make_viewer(self.mock_loader)

    @pytest.mark.unit
    def test_initial_state(self):
        state = self.viewer.state
        assert state == ViewerState()
        assert state.status == "idle"
        assert state.can_download is False
        assert self.viewer.download() is None

    @pytest.mark.unit
    def test_open_ready(self, simple_xlsx_bytes):
        """取得・解析・描画に成功するとready状態になること"""
        self.mock_loader.load.return_value = simple_xlsx_bytes

        state = self.viewer.open("https://host/o/report.xlsx", label="Report")

        assert state.status == "ready"
        assert state.request_id == 1
        assert state.label == "Report"
        assert state.download_name == "report.xlsx"
        assert state.workbook.sheet_names == ["Sheet1"]
        assert state.table.cell_count == 4
        assert state.error is None
        assert state.fallback_html is None

    @pytest.mark.unit
    def test_download_returns_fetched_bytes(self, simple_xlsx_bytes):
        """ダウンロードは取得したバイト列そのものであること"""
        self.mock_loader.load.return_value = simple_xlsx_bytes
        self.viewer.open("https://host/o/report.xlsx")

        artifact = self.viewer.download()

        assert artifact.content == simple_xlsx_bytes
        assert artifact.filename == "report.xlsx"
        assert artifact.size == len(simple_xlsx_bytes)

    @pytest.mark.unit
    def test_open_without_url(self):
        """URLが無い場合はプレビュー不可のエラーになり取得しないこと"""
        state = self.viewer.open(None, label="notes.txt")

        assert state.status == "error"
        assert state.error.category == ErrorCategory.UNSUPPORTED_FILE
        assert state.download_name == "file.xlsx"
        assert state.can_download is False
        self.mock_loader.load.assert_not_called()

    @pytest.mark.unit
    def test_fetch_error(self):
        """取得に失敗するとerror状態になり例外は送出されないこと"""
        self.mock_loader.load.side_effect = FetchError(
            category=ErrorCategory.FETCH,
            message="The spreadsheet file was not found.",
            solution="Please verify the file reference.",
        )

        state = self.viewer.open("https://host/o/missing.xlsx")

        assert state.status == "error"
        assert isinstance(state.error, FetchError)
        assert state.fallback_html is None
        assert state.can_download is False

    @pytest.mark.unit
    def test_unexpected_fetch_exception_is_classified(self):
        self.mock_loader.load.side_effect = RuntimeError("Connection reset")

        state = self.viewer.open("https://host/o/report.xlsx")

        assert state.status == "error"
        assert isinstance(state.error, FetchError)

    @pytest.mark.unit
    def test_parse_error_keeps_download(self):
        """解析に失敗してもフォールバック表示から元ファイルをダウンロードできること"""
        content = b"this is not a spreadsheet"
        self.mock_loader.load.return_value = content

        state = self.viewer.open("https://host/o/broken.xlsx")

        assert state.status == "error"
        assert isinstance(state.error, ParseError)
        assert state.error.message == "Unable to load spreadsheet data."
        assert "Unable to load spreadsheet data." in state.fallback_html
        assert 'data-filename="broken.xlsx"' in state.fallback_html
        assert state.table is None

        artifact = self.viewer.download()
        assert artifact.content == content
        assert artifact.filename == "broken.xlsx"

    @pytest.mark.unit
    def test_renderer_failure_uses_fallback(self, simple_xlsx_bytes):
        self.mock_loader.load.return_value = simple_xlsx_bytes
        renderer = Mock(spec=GridRenderer)
        renderer.render.side_effect = RuntimeError("boom")
        renderer.render_fallback.return_value = "<div>fallback</div>"
        viewer = SpreadsheetViewer(
            loader=self.mock_loader, parser=WorkbookParser(), renderer=renderer
        )

        state = viewer.open("https://host/o/report.xlsx")

        assert state.status == "error"
        assert state.fallback_html == "<div>fallback</div>"
        renderer.render_fallback.assert_called_once_with("report.xlsx")

    @pytest.mark.unit
    def test_later_request_wins(self, simple_xlsx_bytes, multi_sheet_xlsx_bytes):
        """先に発行したリクエストが後から完了しても表示は最新リクエストのままであること"""
        second_states = []

        def load(url):
            if url.endswith("first.xlsx"):
                # 取得中に別のドキュメントが開かれる
                second_states.append(
                    self.viewer.open("https://host/o/second.xlsx", label="Second")
                )
                return simple_xlsx_bytes
            return multi_sheet_xlsx_bytes

        self.mock_loader.load.side_effect = load

        first_state = self.viewer.open("https://host/o/first.xlsx", label="First")

        # 古いリクエストの呼び出し元には自身の状態がstaleとして返る
        assert first_state.stale is True
        assert first_state.request_id == 1
        assert first_state.label == "First"
        assert first_state.url == "https://host/o/first.xlsx"
        assert first_state.table is None

        assert second_states[0].stale is False
        assert second_states[0].status == "ready"

        state = self.viewer.state
        assert state.request_id == 2
        assert state.status == "ready"
        assert state.stale is False
        assert state.label == "Second"
        assert state.table.sheet_name == "First"
        assert state.workbook.sheet_names == ["First", "Second"]
        assert self.viewer.download().content == multi_sheet_xlsx_bytes

    @pytest.mark.unit
    def test_stale_error_is_discarded(self, simple_xlsx_bytes):
        """古いリクエストのエラーは表示されないこと"""

        def load(url):
            if url.endswith("first.xlsx"):
                self.viewer.open("https://host/o/second.xlsx")
                raise RuntimeError("Connection reset")
            return simple_xlsx_bytes

        self.mock_loader.load.side_effect = load

        first_state = self.viewer.open("https://host/o/first.xlsx")

        assert first_state.stale is True
        assert first_state.status == "error"
        assert self.viewer.state.status == "ready"
        assert self.viewer.state.error is None

    @pytest.mark.unit
    def test_stale_result_after_parse_is_not_applied(
        self, simple_xlsx_bytes, multi_sheet_xlsx_bytes
    ):
        """解析中に次のリクエストが発行された場合も表示状態は置き換わらないこと"""
        parser = Mock(spec=WorkbookParser)
        real_parser = WorkbookParser()

        def parse(content):
            if content == simple_xlsx_bytes:
                self.viewer.close()
            return real_parser.parse(content)

        parser.parse.side_effect = parse
        self.viewer.parser = parser
        self.mock_loader.load.return_value = simple_xlsx_bytes

        state = self.viewer.open("https://host/o/report.xlsx")

        # 呼び出し元には自身の結果がstaleとして返る
        assert state.stale is True
        assert state.status == "ready"
        assert state.table.sheet_name == "Sheet1"
        assert self.viewer.state.status == "idle"
        assert self.viewer.download() is None

    @pytest.mark.unit
    def test_close_discards_in_flight_request(self, simple_xlsx_bytes):
        """閉じた後に完了した取得は反映されず、エラーにもならないこと"""

        def load(url):
            self.viewer.close()
            return simple_xlsx_bytes

        self.mock_loader.load.side_effect = load

        state = self.viewer.open("https://host/o/report.xlsx")

        assert state.stale is True
        assert state.error is None
        assert state.table is None
        assert self.viewer.state.status == "idle"
        assert self.viewer.state.error is None
        assert self.viewer.download() is None

    @pytest.mark.unit
    def test_close_resets_state(self, simple_xlsx_bytes):
        self.mock_loader.load.return_value = simple_xlsx_bytes
        self.viewer.open("https://host/o/report.xlsx")

        self.viewer.close()

        assert self.viewer.state.status == "idle"
        assert self.viewer.state.workbook is None
        assert self.viewer.current_request_id == 2

    @pytest.mark.unit
    def test_request_ids_are_monotonic_across_threads(self, simple_xlsx_bytes):
        """並行して開いてもリクエスト番号が重複しないこと"""
        self.mock_loader.load.return_value = simple_xlsx_bytes
        results: list[ViewerState] = []
        results_lock = threading.Lock()

        def worker(index):
            state = self.viewer.open(f"https://host/o/report{index}.xlsx")
            with results_lock:
                results.append(state)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert self.viewer.current_request_id == 8
        assert self.viewer.state.request_id == 8
        assert len(results) == 8
