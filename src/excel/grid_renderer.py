"""
スプレッドシートのテーブル描画モジュール

Workbookの先頭シートをインラインスタイル付きのテーブルに変換する
"""

import logging
from dataclasses import dataclass, field
from html import escape as html_escape
from typing import Any
from urllib.parse import unquote, urlsplit

from openpyxl.utils import get_column_letter

from src.excel.cell_values import stringify_value
from src.excel.colors import DEFAULT_THEME_FALLBACK
from src.excel.models import SheetRange, StyleRecord, Workbook
from src.excel.style_resolver import ExcelStyleResolver

logger = logging.getLogger(__name__)

DEFAULT_DOWNLOAD_FILENAME = "file.xlsx"

# 偶数行 / 奇数行の背景色（明示的な背景色が無い場合）
ZEBRA_EVEN_BACKGROUND = "#f9f9f9"
ZEBRA_ODD_BACKGROUND = "#ffffff"

BASE_CELL_STYLE = {
    "padding": "8px 12px",
    "border": "1px solid #d0d0d0",
    "white-space": "nowrap",
    "min-width": "80px",
    "color": "#000000",
}

TABLE_STYLE = "width: 100%; border-collapse: collapse; font-size: 14px; background-color: #ffffff"

UNABLE_TO_LOAD_MESSAGE = "Unable to load spreadsheet data."


@dataclass(slots=True)
class RenderedCell:
    row: int
    column: int
    text: str
    style: dict[str, str] = field(default_factory=dict)

    def style_attribute(self) -> str:
        return "; ".join(f"{key}: {value}" for key, value in self.style.items())


@dataclass(slots=True)
class TableView:
    """描画済みテーブル（範囲内の座標ごとに1セル）"""

    sheet_name: str
    range: SheetRange
    rows: list[list[RenderedCell]] = field(default_factory=list)

    @property
    def cell_count(self) -> int:
        return sum(len(row) for row in self.rows)

    def to_html(self) -> str:
        parts: list[str] = []
        parts.append(
            f'<table class="spreadsheet-preview" data-sheet="{html_escape(self.sheet_name)}" '
            f'data-range="{self.range.ref}" style="{TABLE_STYLE}">'
        )
        parts.append("<tbody>")
        for row in self.rows:
            parts.append("<tr>")
            for cell in row:
                parts.append(
                    f'<td style="{html_escape(cell.style_attribute())}">'
                    f"{html_escape(cell.text)}</td>"
                )
            parts.append("</tr>")
        parts.append("</tbody>")
        parts.append("</table>")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sheet_name": self.sheet_name,
            "range": self.range.ref,
            "rows": [
                [
                    {
                        "coordinate": f"{get_column_letter(cell.column)}{cell.row}",
                        "text": cell.text,
                        "style": cell.style,
                    }
                    for cell in row
                ]
                for row in self.rows
            ],
        }


@dataclass(frozen=True, slots=True)
class DownloadArtifact:
    """ダウンロード用の元ファイル（取得したバイト列そのもの）"""

    filename: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class GridRenderer:
    """Workbookの先頭シートをテーブルとして描画"""

    def __init__(self, theme_fallback: str | None = DEFAULT_THEME_FALLBACK):
        self.theme_fallback = theme_fallback

    def render(self, workbook: Workbook) -> TableView:
        """
        先頭シートをTableViewに変換

        Args:
            workbook: デコード済みWorkbook

        Returns:
            TableView
        """
        sheet = workbook.default_sheet
        rows: list[list[RenderedCell]] = []

        for grid_row_index, grid_row in enumerate(sheet.rows):
            rendered_row = []
            for cell in grid_row:
                record = ExcelStyleResolver.resolve(
                    workbook.style_for(cell), cell.kind, self.theme_fallback
                )
                rendered_row.append(
                    RenderedCell(
                        row=cell.row,
                        column=cell.column,
                        text=stringify_value(cell.value),
                        style=self.cell_style(record, grid_row_index),
                    )
                )
            rows.append(rendered_row)

        logger.info(
            f"Rendered sheet '{sheet.name}' ({sheet.range.ref}, {sheet.range.cell_count} cells)"
        )
        return TableView(sheet_name=sheet.name, range=sheet.range, rows=rows)

    def render_html(self, workbook: Workbook) -> str:
        return self.render(workbook).to_html()

    @staticmethod
    def cell_style(record: StyleRecord, grid_row_index: int) -> dict[str, str]:
        """
        StyleRecordをインラインスタイルに変換

        明示的な背景色が無い場合は行の偶奇で縞模様の背景色を使う
        """
        style = dict(BASE_CELL_STYLE)

        if record.background_color:
            style["background-color"] = record.background_color
        elif grid_row_index % 2 == 0:
            style["background-color"] = ZEBRA_EVEN_BACKGROUND
        else:
            style["background-color"] = ZEBRA_ODD_BACKGROUND

        if record.text_color:
            style["color"] = record.text_color
        style["font-weight"] = record.font_weight
        style["font-style"] = record.font_style
        if record.font_size:
            style["font-size"] = record.font_size
        if record.text_align:
            style["text-align"] = record.text_align
        style["vertical-align"] = record.vertical_align
        if record.border:
            style["border"] = record.border

        return style

    @staticmethod
    def render_fallback(download_name: str | None = None) -> str:
        """
        解析失敗時の表示（中央寄せのメッセージとダウンロードボタン）
        """
        filename = html_escape(download_name or DEFAULT_DOWNLOAD_FILENAME)
        return (
            '<div class="spreadsheet-preview-fallback" '
            'style="padding: 24px; text-align: center; display: flex; '
            'flex-direction: column; justify-content: center">'
            f"<p>{UNABLE_TO_LOAD_MESSAGE}</p>"
            f'<button type="button" data-action="download" data-filename="{filename}">'
            "Download File</button>"
            "</div>"
        )


def download_filename(url: str | None) -> str:
    """
    URLの最終パスセグメントからダウンロードファイル名を生成

    Examples:
        - "https://host/o/reports%2Fq1.xlsx" -> "q1.xlsx"
        - "https://host/files/" -> "file.xlsx"
        - "data:application/vnd.ms-excel;base64,..." -> "file.xlsx"
    """
    if not url or url.startswith("data:"):
        return DEFAULT_DOWNLOAD_FILENAME
    try:
        path = unquote(urlsplit(url).path)
    except ValueError:
        return DEFAULT_DOWNLOAD_FILENAME
    name = path.rsplit("/", 1)[-1].strip()
    return name or DEFAULT_DOWNLOAD_FILENAME
