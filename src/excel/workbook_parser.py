"""
スプレッドシート解析モジュール（openpyxl / xlrd方式）

取得済みのバイト列をWorkbookモデルにデコードする
"""

import logging
from io import BytesIO

from openpyxl import load_workbook
from openpyxl.styles import Color

from src.error_messages import ErrorCategory, ParseError, get_parse_error
from src.excel.cell_values import normalize_cell_value
from src.excel.colors import ColorSource
from src.excel.legacy_xls import parse_xls_workbook
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

# コンテナ形式のシグネチャ
ZIP_SIGNATURE = b"PK\x03\x04"
OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

# openpyxlが「色指定なし」として使うデフォルト値
OPENPYXL_UNSET_RGB = "00000000"


class WorkbookParser:
    """スプレッドシートのバイト列をWorkbookにデコードするパーサー"""

    def parse(self, data: bytes) -> Workbook:
        """
        バイト列をWorkbookにデコード

        Args:
            data: 取得したファイルのバイト列（変更しない）

        Returns:
            Workbook（全シートを宣言順に保持、先頭シートが表示対象）

        Raises:
            ParseError: スプレッドシートとして認識できない場合
        """
        if not data:
            raise ParseError(
                category=ErrorCategory.PARSE,
                message="Unable to load spreadsheet data.",
                solution="The downloaded file is empty. Download the original file to check its contents.",
            )

        source_format = self.detect_format(data)
        logger.info(f"Parsing spreadsheet ({source_format}, {len(data)} bytes)")

        try:
            if source_format == "xlsx":
                workbook = self._parse_xlsx(data)
            elif source_format == "xls":
                workbook = parse_xls_workbook(data)
            else:
                raise ValueError("not a valid spreadsheet container (unknown signature)")
        except ParseError:
            raise
        except Exception as e:
            logger.error(f"Failed to parse spreadsheet: {str(e)}")
            raise get_parse_error(e) from e

        logger.info(
            f"Parsed {len(workbook.sheets)} sheets "
            f"(default: {workbook.default_sheet.name}, range={workbook.default_sheet.range.ref})"
        )
        return workbook

    @staticmethod
    def detect_format(data: bytes) -> str | None:
        """
        先頭バイトからコンテナ形式を判定

        Returns:
            "xlsx"（ZIP / OOXML）、"xls"（OLE2 / BIFF）、判定不能の場合はNone
        """
        if data.startswith(ZIP_SIGNATURE):
            return "xlsx"
        if data.startswith(OLE2_SIGNATURE):
            return "xls"
        return None

    def _parse_xlsx(self, data: bytes) -> Workbook:
        """openpyxlでOOXMLワークブックをデコード"""
        # BytesIOでメモリ上に展開（元のバイト列は変更しない）
        file_stream = BytesIO(data)

        # data_only=Trueで数式のキャッシュ値を取得
        workbook = load_workbook(file_stream, data_only=True)

        worksheets = workbook.worksheets
        if not worksheets:
            raise ValueError("not a valid spreadsheet: workbook contains no worksheets")

        declared_ranges = self._declared_ranges(data)

        style_table = StyleTable()
        sheets = [
            self._parse_xlsx_sheet(ws, style_table, declared_ranges.get(ws.title))
            for ws in worksheets
        ]

        return Workbook(source_format="xlsx", sheets=sheets, styles=style_table.styles)

    @staticmethod
    def _declared_ranges(data: bytes) -> dict[str, SheetRange]:
        """
        各シートの<dimension ref>に宣言されたセル範囲を取得

        通常モードのopenpyxlは読み込んだセルから範囲を再計算するため、
        宣言値はread_onlyモードで別途読み取る

        Returns:
            シート名 → 宣言範囲（宣言が無い・読み取れないシートは含まない）
        """
        declared: dict[str, SheetRange] = {}
        try:
            workbook = load_workbook(BytesIO(data), read_only=True)
        except Exception as e:
            logger.debug(f"Failed to read declared sheet dimensions: {e}")
            return declared

        try:
            for ws in workbook.worksheets:
                try:
                    # 宣言が無いシートはValueError（unsized）
                    declared[ws.title] = SheetRange.from_ref(ws.calculate_dimension())
                except Exception as e:
                    logger.debug(f"Sheet '{ws.title}' has no declared dimension: {e}")
        finally:
            workbook.close()

        return declared

    def _parse_xlsx_sheet(
        self, sheet, style_table: StyleTable, declared_range: SheetRange | None = None
    ) -> Sheet:
        """
        シートの範囲内の全座標についてGridCellを生成

        範囲は宣言範囲と読み込んだセルの範囲の和。値の無い座標は空セルになる

        Args:
            sheet: openpyxl Worksheet
            style_table: 書式登録先
            declared_range: <dimension ref>に宣言された範囲

        Returns:
            Sheet（範囲内の座標ごとに1セル）
        """
        # sheet.dimensionsはセルが無い場合 "A1:A1" を返す
        sheet_range = SheetRange.from_ref(
            str(sheet.dimensions) if sheet.dimensions else None
        ).union(declared_range)

        rows: list[list[GridCell]] = []
        for row in sheet.iter_rows(
            min_row=sheet_range.row_start,
            max_row=sheet_range.row_end,
            min_col=sheet_range.col_start,
            max_col=sheet_range.col_end,
        ):
            grid_row = []
            for cell in row:
                value, kind = normalize_cell_value(cell.value)
                style_ref = None
                if cell.has_style:
                    style_ref = style_table.register(self._decode_style(cell))
                grid_row.append(
                    GridCell(
                        row=cell.row,
                        column=cell.column,
                        value=value,
                        kind=kind,
                        style_ref=style_ref,
                    )
                )
            rows.append(grid_row)

        return Sheet(name=sheet.title, range=sheet_range, rows=rows)

    def _decode_style(self, cell) -> RawStyle | None:
        """
        openpyxlセルの書式をRawStyleにデコード

        書式の一部が壊れていてもその部分だけ欠落させる
        """
        try:
            fill = self._decode_fill(cell.fill)
        except Exception as e:
            logger.debug(f"Failed to decode fill of {cell.coordinate}: {e}")
            fill = None

        try:
            font = self._decode_font(cell.font)
        except Exception as e:
            logger.debug(f"Failed to decode font of {cell.coordinate}: {e}")
            font = None

        try:
            alignment = self._decode_alignment(cell.alignment)
        except Exception as e:
            logger.debug(f"Failed to decode alignment of {cell.coordinate}: {e}")
            alignment = None

        try:
            border = self._decode_border(cell.border)
        except Exception as e:
            logger.debug(f"Failed to decode border of {cell.coordinate}: {e}")
            border = None

        if fill is None and font is None and alignment is None and border is None:
            return None
        return RawStyle(fill=fill, font=font, alignment=alignment, border=border)

    @staticmethod
    def _color_source(color: Color | None) -> ColorSource | None:
        """
        openpyxl ColorオブジェクトをColorSourceに変換

        Args:
            color: openpyxl Color

        Returns:
            ColorSource またはNone（auto・未指定の場合）
        """
        if color is None:
            return None

        if color.type == "rgb":
            # RGB形式 (例: "FFFF0000")
            rgb = color.rgb
            if rgb and isinstance(rgb, str) and rgb != OPENPYXL_UNSET_RGB:
                return ColorSource.rgb(rgb)
        elif color.type == "indexed":
            return ColorSource.indexed(int(color.indexed))
        elif color.type == "theme":
            return ColorSource.theme(int(color.theme))

        return None

    def _decode_fill(self, fill) -> RawFill | None:
        # パターン未指定（およびグラデーション）は背景色なしとして扱う
        if fill is None or not getattr(fill, "patternType", None):
            return None
        fg = self._color_source(fill.fgColor)
        bg = self._color_source(fill.bgColor)
        if fg is None and bg is None:
            return None
        return RawFill(fg=fg, bg=bg)

    def _decode_font(self, font) -> RawFont | None:
        if font is None:
            return None
        return RawFont(
            bold=bool(font.b),
            italic=bool(font.i),
            size=float(font.sz) if font.sz else None,
            color=self._color_source(font.color),
        )

    @staticmethod
    def _decode_alignment(alignment) -> RawAlignment | None:
        if alignment is None or (not alignment.horizontal and not alignment.vertical):
            return None
        return RawAlignment(
            horizontal=alignment.horizontal, vertical=alignment.vertical
        )

    def _decode_border(self, border) -> RawBorder | None:
        if border is None:
            return None

        def edge(side) -> RawBorderEdge:
            if side is None or not side.style:
                return RawBorderEdge()
            return RawBorderEdge(declared=True, color=self._color_source(side.color))

        raw = RawBorder(
            top=edge(border.top),
            bottom=edge(border.bottom),
            left=edge(border.left),
            right=edge(border.right),
        )
        if not any(e.declared for e in raw.edges()):
            return None
        return raw
