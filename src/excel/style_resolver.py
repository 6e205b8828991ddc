"""
Excelスタイル解決ユーティリティ

パース済みの生書式（RawStyle）を描画用のStyleRecordに正規化するヘルパークラス
"""

import logging
from collections.abc import Callable
from typing import TypeVar

from src.excel.colors import DEFAULT_THEME_FALLBACK, resolve_color
from src.excel.models import CellKind, RawStyle, StyleRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BORDER_COLOR = "#D0D0D0"

# Excelの水平配置 → CSS text-align
HORIZONTAL_ALIGNMENTS = {
    "left": "left",
    "center": "center",
    "centercontinuous": "center",
    "right": "right",
    "fill": "left",
    "justify": "left",
    "distributed": "left",
}

# Excelの垂直配置 → CSS vertical-align
VERTICAL_ALIGNMENTS = {
    "top": "top",
    "center": "middle",
    "middle": "middle",
    "bottom": "bottom",
    "justify": "middle",
    "distributed": "middle",
}


class ExcelStyleResolver:
    """セルスタイルの正規化（全て staticmethod）"""

    @staticmethod
    def resolve(
        raw_style: RawStyle | None,
        kind: CellKind = "text",
        theme_fallback: str | None = DEFAULT_THEME_FALLBACK,
    ) -> StyleRecord:
        """
        生書式をStyleRecordに変換

        属性ごとに独立して解決し、ある属性の解決に失敗しても
        その属性だけデフォルト値になる（例外は送出しない）

        Args:
            raw_style: パース時にデコードした書式（Noneの場合は全てデフォルト）
            kind: セル値の種類（数値は右寄せ、それ以外は左寄せがデフォルト）
            theme_fallback: 未知のテーマIDに使う色

        Returns:
            StyleRecord
        """
        default_align = "right" if kind == "number" else "left"
        if raw_style is None:
            return StyleRecord(text_align=default_align)

        resolve = ExcelStyleResolver
        return StyleRecord(
            background_color=_safe(
                "background_color",
                lambda: resolve.background_color(raw_style, theme_fallback),
                None,
            ),
            text_color=_safe(
                "text_color",
                lambda: resolve.text_color(raw_style, theme_fallback),
                None,
            ),
            font_weight=_safe(
                "font_weight", lambda: resolve.font_weight(raw_style), "normal"
            ),
            font_style=_safe(
                "font_style", lambda: resolve.font_style(raw_style), "normal"
            ),
            font_size=_safe("font_size", lambda: resolve.font_size(raw_style), None),
            text_align=_safe(
                "text_align",
                lambda: resolve.text_align(raw_style) or default_align,
                default_align,
            ),
            vertical_align=_safe(
                "vertical_align",
                lambda: resolve.vertical_align(raw_style) or "middle",
                "middle",
            ),
            border=_safe(
                "border", lambda: resolve.border(raw_style, theme_fallback), None
            ),
        )

    @staticmethod
    def background_color(
        raw_style: RawStyle, theme_fallback: str | None = DEFAULT_THEME_FALLBACK
    ) -> str | None:
        """背景色（前景色 → 背景色の順に解決、どちらも無ければNone）"""
        fill = raw_style.fill
        if fill is None:
            return None
        return resolve_color(fill.fg, theme_fallback) or resolve_color(
            fill.bg, theme_fallback
        )

    @staticmethod
    def text_color(
        raw_style: RawStyle, theme_fallback: str | None = DEFAULT_THEME_FALLBACK
    ) -> str | None:
        font = raw_style.font
        if font is None:
            return None
        return resolve_color(font.color, theme_fallback)

    @staticmethod
    def font_weight(raw_style: RawStyle) -> str:
        if raw_style.font is not None and raw_style.font.bold:
            return "bold"
        return "normal"

    @staticmethod
    def font_style(raw_style: RawStyle) -> str:
        if raw_style.font is not None and raw_style.font.italic:
            return "italic"
        return "normal"

    @staticmethod
    def font_size(raw_style: RawStyle) -> str | None:
        """フォントサイズ（例: 11.0 → "11pt", 10.5 → "10.5pt"）"""
        font = raw_style.font
        if font is None or not font.size:
            return None
        size = float(font.size)
        if size <= 0:
            return None
        if size.is_integer():
            return f"{int(size)}pt"
        return f"{size:g}pt"

    @staticmethod
    def text_align(raw_style: RawStyle) -> str | None:
        """明示的な水平配置（"general"や未設定の場合はNone）"""
        alignment = raw_style.alignment
        if alignment is None or not alignment.horizontal:
            return None
        return HORIZONTAL_ALIGNMENTS.get(alignment.horizontal.lower())

    @staticmethod
    def vertical_align(raw_style: RawStyle) -> str | None:
        alignment = raw_style.alignment
        if alignment is None or not alignment.vertical:
            return None
        return VERTICAL_ALIGNMENTS.get(alignment.vertical.lower())

    @staticmethod
    def border(
        raw_style: RawStyle, theme_fallback: str | None = DEFAULT_THEME_FALLBACK
    ) -> str | None:
        """
        罫線（いずれかの辺に罫線があれば "1px solid <色>"）

        色は上→下→左→右の順で最初に解決できたもの、
        どの辺からも解決できなければ中間グレー
        """
        border = raw_style.border
        if border is None:
            return None

        edges = border.edges()
        if not any(edge.declared for edge in edges):
            return None

        color = None
        for edge in edges:
            if not edge.declared:
                continue
            color = resolve_color(edge.color, theme_fallback)
            if color:
                break

        return f"1px solid {color or DEFAULT_BORDER_COLOR}"


def _safe(attribute: str, resolver: Callable[[], T], default: T) -> T:
    """属性単位で解決し、失敗時はデフォルト値を返す"""
    try:
        return resolver()
    except Exception as e:
        logger.debug(f"Style resolution gap on '{attribute}', using default: {e}")
        return default
