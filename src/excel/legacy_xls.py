"""
旧形式（Excel 97-2003 / BIFF）ワークブックのデコード

xlrdの書式情報（XF・フォント）をRawStyleに変換する
"""

import logging

import xlrd

from src.excel.cell_values import normalize_cell_value
from src.excel.colors import ColorSource
from src.excel.models import (
    GridCell,
    RawAlignment,
    RawBorder,
    RawBorderEdge,
    RawFill,
    RawFont,
    RawStyle,
    Sheet,
    SheetRange,
    StyleTable,
    Workbook,
)

logger = logging.getLogger(__name__)

# 既定のセルXF（BIFF8ではXF 0-14がスタイルXF、15が標準セル書式）
DEFAULT_CELL_XF_INDEX = 15

# XFAlignment.hor_align → OOXMLの配置名
HORIZONTAL_ALIGN_CODES = {
    0: "general",
    1: "left",
    2: "center",
    3: "right",
    4: "fill",
    5: "justify",
    6: "centerContinuous",
    7: "distributed",
}

# XFAlignment.vert_align → OOXMLの配置名
VERTICAL_ALIGN_CODES = {
    0: "top",
    1: "center",
    2: "bottom",
    3: "justify",
    4: "distributed",
}

# フォントの高さはtwips（1/20ポイント）
TWIPS_PER_POINT = 20


def parse_xls_workbook(data: bytes) -> Workbook:
    """
    xlrdで旧形式ワークブックをデコード

    Args:
        data: .xlsファイルのバイト列

    Returns:
        Workbook
    """
    book = xlrd.open_workbook(file_contents=data, formatting_info=True)

    if book.nsheets == 0:
        raise ValueError("not a valid spreadsheet: workbook contains no worksheets")

    decoder = XlsStyleDecoder(book)
    style_table = StyleTable()
    sheets = [
        _parse_xls_sheet(book, book.sheet_by_index(index), decoder, style_table)
        for index in range(book.nsheets)
    ]
    return Workbook(source_format="xls", sheets=sheets, styles=style_table.styles)


def _parse_xls_sheet(book, sheet, decoder: "XlsStyleDecoder", style_table: StyleTable) -> Sheet:
    # セルが無いシートは単一セル A1
    if sheet.nrows == 0 or sheet.ncols == 0:
        return Sheet(
            name=sheet.name,
            range=SheetRange(1, 1, 1, 1),
            rows=[[GridCell(row=1, column=1)]],
        )

    sheet_range = SheetRange(1, sheet.nrows, 1, sheet.ncols)
    rows: list[list[GridCell]] = []
    for rowx in range(sheet.nrows):
        grid_row = []
        for colx in range(sheet.ncols):
            cell = sheet.cell(rowx, colx)
            value, kind = normalize_cell_value(_cell_value(book, cell))
            style_ref = style_table.register(decoder.decode(cell.xf_index))
            grid_row.append(
                GridCell(
                    row=rowx + 1,
                    column=colx + 1,
                    value=value,
                    kind=kind,
                    style_ref=style_ref,
                )
            )
        rows.append(grid_row)

    return Sheet(name=sheet.name, range=sheet_range, rows=rows)


def _cell_value(book, cell):
    """xlrdセルの値をPythonの値に変換"""
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
        return None
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    if cell.ctype == xlrd.XL_CELL_ERROR:
        return xlrd.error_text_from_code.get(cell.value, "#ERR")
    if cell.ctype == xlrd.XL_CELL_DATE:
        try:
            return xlrd.xldate_as_datetime(cell.value, book.datemode)
        except Exception as e:
            logger.debug(f"Failed to convert date value {cell.value}: {e}")
            return cell.value
    return cell.value


class XlsStyleDecoder:
    """XFインデックスからRawStyleへの変換（XFごとにキャッシュ）"""

    def __init__(self, book):
        self.book = book
        self._cache: dict[int, RawStyle | None] = {}
        self._default_style = self._decode_xf(DEFAULT_CELL_XF_INDEX)

    def decode(self, xf_index: int | None) -> RawStyle | None:
        """
        XFインデックスをRawStyleに変換

        既定セル書式と同じ書式の場合はNone（スタイル参照なし）を返す
        """
        if xf_index is None or xf_index < 0:
            return None
        if xf_index not in self._cache:
            style = self._decode_xf(xf_index)
            if style == self._default_style:
                style = None
            self._cache[xf_index] = style
        return self._cache[xf_index]

    def _decode_xf(self, xf_index: int) -> RawStyle | None:
        if xf_index >= len(self.book.xf_list):
            return None

        xf = self.book.xf_list[xf_index]
        try:
            fill = self._decode_fill(xf.background)
        except Exception as e:
            logger.debug(f"Failed to decode fill of XF {xf_index}: {e}")
            fill = None

        try:
            font = self._decode_font(xf.font_index)
        except Exception as e:
            logger.debug(f"Failed to decode font of XF {xf_index}: {e}")
            font = None

        try:
            alignment = self._decode_alignment(xf.alignment)
        except Exception as e:
            logger.debug(f"Failed to decode alignment of XF {xf_index}: {e}")
            alignment = None

        try:
            border = self._decode_border(xf.border)
        except Exception as e:
            logger.debug(f"Failed to decode border of XF {xf_index}: {e}")
            border = None

        if fill is None and font is None and alignment is None and border is None:
            return None
        return RawStyle(fill=fill, font=font, alignment=alignment, border=border)

    @staticmethod
    def _decode_fill(background) -> RawFill | None:
        # fill_pattern 0 はパターンなし
        if background is None or not background.fill_pattern:
            return None
        fg = ColorSource.indexed(background.pattern_colour_index)
        bg = ColorSource.indexed(background.background_colour_index)
        return RawFill(fg=fg, bg=bg)

    def _decode_font(self, font_index: int) -> RawFont | None:
        if font_index is None or font_index >= len(self.book.font_list):
            return None
        font = self.book.font_list[font_index]
        return RawFont(
            bold=bool(font.bold),
            italic=bool(font.italic),
            size=font.height / TWIPS_PER_POINT if font.height else None,
            color=ColorSource.indexed(font.colour_index),
        )

    @staticmethod
    def _decode_alignment(alignment) -> RawAlignment | None:
        if alignment is None:
            return None
        horizontal = HORIZONTAL_ALIGN_CODES.get(alignment.hor_align)
        vertical = VERTICAL_ALIGN_CODES.get(alignment.vert_align)
        # 標準（general / 下揃え）は明示的な配置として扱わない
        if horizontal == "general":
            horizontal = None
        if vertical == "bottom":
            vertical = None
        if horizontal is None and vertical is None:
            return None
        return RawAlignment(horizontal=horizontal, vertical=vertical)

    @staticmethod
    def _decode_border(border) -> RawBorder | None:
        if border is None:
            return None

        def edge(line_style: int, colour_index: int) -> RawBorderEdge:
            # line_style 0 は罫線なし
            if not line_style:
                return RawBorderEdge()
            return RawBorderEdge(
                declared=True, color=ColorSource.indexed(colour_index)
            )

        raw = RawBorder(
            top=edge(border.top_line_style, border.top_colour_index),
            bottom=edge(border.bottom_line_style, border.bottom_colour_index),
            left=edge(border.left_line_style, border.left_colour_index),
            right=edge(border.right_line_style, border.right_colour_index),
        )
        if not any(e.declared for e in raw.edges()):
            return None
        return raw
