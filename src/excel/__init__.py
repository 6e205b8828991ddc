"""
Excel処理ヘルパーモジュール

スプレッドシートプレビューの解析・スタイル解決・描画を担当するクラス群
"""

from src.excel.colors import ColorSource, resolve_color
from src.excel.grid_renderer import DownloadArtifact, GridRenderer, TableView
from src.excel.models import SheetRange, StyleRecord, Workbook
from src.excel.style_resolver import ExcelStyleResolver
from src.excel.workbook_parser import WorkbookParser

__all__ = [
    "ColorSource",
    "resolve_color",
    "SheetRange",
    "StyleRecord",
    "Workbook",
    "WorkbookParser",
    "ExcelStyleResolver",
    "GridRenderer",
    "TableView",
    "DownloadArtifact",
]
