"""
スプレッドシートプレビューのデータモデル

ワークブック・シート・セル・スタイルの型定義
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Literal

from openpyxl.utils import get_column_letter, range_boundaries

from src.excel.colors import ColorSource

CellKind = Literal["text", "number", "empty"]
SourceFormat = Literal["xlsx", "xls"]


@dataclass(frozen=True, slots=True)
class SheetRange:
    """シートのセル範囲（1始まり、両端を含む）"""

    row_start: int
    row_end: int
    col_start: int
    col_end: int

    def __post_init__(self):
        if self.row_start < 1 or self.col_start < 1:
            raise ValueError(f"無効なセル範囲: 行・列は1以上である必要があります ({self})")
        if self.row_end < self.row_start or self.col_end < self.col_start:
            raise ValueError(
                f"無効なセル範囲: 範囲は正しい順序で指定してください ({self})"
            )

    @classmethod
    def from_ref(cls, ref: str | None) -> "SheetRange":
        """
        "A1:D10" 形式の文字列からSheetRangeを生成

        Noneや空文字の場合は単一セル A1 を返す
        """
        if not ref or not ref.strip():
            return cls(1, 1, 1, 1)
        min_col, min_row, max_col, max_row = range_boundaries(
            ref.strip().replace("$", "")
        )
        if min_col is None or min_row is None:
            raise ValueError(f"無効なセル範囲: '{ref}'")
        return cls(
            row_start=min_row,
            row_end=max_row if max_row is not None else min_row,
            col_start=min_col,
            col_end=max_col if max_col is not None else min_col,
        )

    @property
    def ref(self) -> str:
        return (
            f"{get_column_letter(self.col_start)}{self.row_start}:"
            f"{get_column_letter(self.col_end)}{self.row_end}"
        )

    @property
    def row_count(self) -> int:
        return self.row_end - self.row_start + 1

    @property
    def col_count(self) -> int:
        return self.col_end - self.col_start + 1

    @property
    def cell_count(self) -> int:
        return self.row_count * self.col_count

    def union(self, other: "SheetRange | None") -> "SheetRange":
        """両方の範囲を含む最小の範囲"""
        if other is None:
            return self
        return SheetRange(
            row_start=min(self.row_start, other.row_start),
            row_end=max(self.row_end, other.row_end),
            col_start=min(self.col_start, other.col_start),
            col_end=max(self.col_end, other.col_end),
        )

    def iter_coordinates(self) -> Iterator[tuple[int, int]]:
        for row in range(self.row_start, self.row_end + 1):
            for col in range(self.col_start, self.col_end + 1):
                yield row, col


@dataclass(frozen=True, slots=True)
class RawFill:
    fg: ColorSource | None = None
    bg: ColorSource | None = None


@dataclass(frozen=True, slots=True)
class RawFont:
    bold: bool = False
    italic: bool = False
    size: float | None = None
    color: ColorSource | None = None


@dataclass(frozen=True, slots=True)
class RawAlignment:
    horizontal: str | None = None
    vertical: str | None = None


@dataclass(frozen=True, slots=True)
class RawBorderEdge:
    declared: bool = False
    color: ColorSource | None = None


@dataclass(frozen=True, slots=True)
class RawBorder:
    top: RawBorderEdge = field(default_factory=RawBorderEdge)
    bottom: RawBorderEdge = field(default_factory=RawBorderEdge)
    left: RawBorderEdge = field(default_factory=RawBorderEdge)
    right: RawBorderEdge = field(default_factory=RawBorderEdge)

    def edges(self) -> tuple[RawBorderEdge, ...]:
        """色解決の優先順（上→下→左→右）で辺を返す"""
        return (self.top, self.bottom, self.left, self.right)


@dataclass(frozen=True, slots=True)
class RawStyle:
    """
    パース時に一度だけデコードされるセルの書式

    openpyxl / xlrd の書式オブジェクトをこの型に正規化してから
    StyleResolverに渡す
    """

    fill: RawFill | None = None
    font: RawFont | None = None
    alignment: RawAlignment | None = None
    border: RawBorder | None = None


@dataclass(frozen=True, slots=True)
class StyleRecord:
    """描画用に正規化されたセルスタイル"""

    background_color: str | None = None
    text_color: str | None = None
    font_weight: Literal["bold", "normal"] = "normal"
    font_style: Literal["italic", "normal"] = "normal"
    font_size: str | None = None
    text_align: Literal["left", "right", "center"] | None = None
    vertical_align: str = "middle"
    border: str | None = None


@dataclass(slots=True)
class StyleTable:
    """パース中に生書式を登録するテーブル（同一書式は同じ参照を共有）"""

    styles: list[RawStyle] = field(default_factory=list)
    _index: dict[RawStyle, int] = field(default_factory=dict, repr=False)

    def register(self, style: RawStyle | None) -> int | None:
        if style is None:
            return None
        ref = self._index.get(style)
        if ref is None:
            ref = len(self.styles)
            self.styles.append(style)
            self._index[style] = ref
        return ref


@dataclass(slots=True)
class GridCell:
    row: int
    column: int
    value: str | int | float = ""
    kind: CellKind = "empty"
    style_ref: int | None = None

    @property
    def coordinate(self) -> str:
        return f"{get_column_letter(self.column)}{self.row}"

    @property
    def is_numeric(self) -> bool:
        return self.kind == "number"


@dataclass(slots=True)
class Sheet:
    name: str
    range: SheetRange
    rows: list[list[GridCell]] = field(default_factory=list)

    def iter_cells(self) -> Iterator[GridCell]:
        for row in self.rows:
            yield from row


@dataclass(slots=True)
class Workbook:
    """デコード済みワークブック（プレビュー表示中のみ保持される）"""

    source_format: SourceFormat
    sheets: list[Sheet] = field(default_factory=list)
    styles: list[RawStyle] = field(default_factory=list)

    @property
    def sheet_names(self) -> list[str]:
        return [sheet.name for sheet in self.sheets]

    @property
    def default_sheet(self) -> Sheet:
        """宣言順で最初のシート（表示対象）"""
        if not self.sheets:
            raise ValueError("ワークブックにシートがありません")
        return self.sheets[0]

    def style_for(self, cell: GridCell) -> RawStyle | None:
        if cell.style_ref is None:
            return None
        if 0 <= cell.style_ref < len(self.styles):
            return self.styles[cell.style_ref]
        return None
