"""
Excelカラー解決ユーティリティ

RGB・インデックス・テーマの3種類のカラー表現を16進数カラーコードに変換する
"""

from dataclasses import dataclass
from typing import Literal

ColorKind = Literal["rgb", "indexed", "theme"]

DEFAULT_THEME_FALLBACK = "#000000"

# 旧形式（BIFF）の56色パレット（インデックス0始まり）
INDEXED_COLORS: tuple[str, ...] = (
    "#000000", "#FFFFFF", "#FF0000", "#00FF00", "#0000FF", "#FFFF00",
    "#FF00FF", "#00FFFF", "#800000", "#008000", "#000080", "#808000",
    "#800080", "#008080", "#C0C0C0", "#808080", "#9999FF", "#993366",
    "#FFFFCC", "#CCFFFF", "#660066", "#FF8080", "#0066CC", "#CCCCFF",
    "#000080", "#FF00FF", "#FFFF00", "#00FFFF", "#800080", "#800000",
    "#008080", "#0000FF", "#00CCFF", "#CCFFFF", "#CCFFCC", "#FFFF99",
    "#99CCFF", "#FF99CC", "#CC99FF", "#FFCC99", "#3366FF", "#33CCCC",
    "#99CC00", "#FFCC00", "#FF9900", "#FF6600", "#666699", "#969696",
    "#003366", "#339966", "#003300", "#333300", "#993300", "#993366",
    "#333399", "#333333",
)  # fmt: skip

# Officeテーマの10色（Background 1, Text 1, Background 2, Text 2, Accent 1-6）
THEME_COLORS: tuple[str, ...] = (
    "#FFFFFF",
    "#000000",
    "#1F497D",
    "#EEECE1",
    "#4F81BD",
    "#F79646",
    "#9BBB59",
    "#8064A2",
    "#4BACC6",
    "#F79646",
)


@dataclass(frozen=True, slots=True)
class ColorSource:
    """セルの生カラー表現（rgb: "FFFF0000" / indexed: 2 / theme: 4）"""

    kind: ColorKind
    value: str | int

    @classmethod
    def rgb(cls, value: str) -> "ColorSource":
        return cls("rgb", value)

    @classmethod
    def indexed(cls, value: int) -> "ColorSource":
        return cls("indexed", value)

    @classmethod
    def theme(cls, value: int) -> "ColorSource":
        return cls("theme", value)


def rgb_to_hex(rgb: str) -> str | None:
    """
    RGB/ARGB文字列を16進数カラーコードに変換

    Args:
        rgb: "FF0000" / "FFFF0000" / "#FF0000"

    Returns:
        "#FF0000" 形式の文字列。不正な値の場合はNone
    """
    value = rgb.strip().lstrip("#")
    if len(value) < 6:
        return None
    # ARGB形式の場合は下6桁（RGB部分）のみ使用
    value = value[-6:]
    try:
        int(value, 16)
    except ValueError:
        return None
    return f"#{value.upper()}"


def resolve_color(
    source: ColorSource | None,
    theme_fallback: str | None = DEFAULT_THEME_FALLBACK,
) -> str | None:
    """
    ColorSourceを16進数カラーコードに解決

    Args:
        source: 生カラー表現
        theme_fallback: 未知のテーマIDに使う色（Noneで色なし）

    Returns:
        16進数カラーコード (例: "#FF0000") またはNone
    """
    if source is None:
        return None

    if source.kind == "rgb":
        if isinstance(source.value, str):
            return rgb_to_hex(source.value)
        return None

    if source.kind == "indexed":
        index = source.value
        if isinstance(index, int) and 0 <= index < len(INDEXED_COLORS):
            return INDEXED_COLORS[index]
        return None

    if source.kind == "theme":
        theme_id = source.value
        if isinstance(theme_id, int) and 0 <= theme_id < len(THEME_COLORS):
            return THEME_COLORS[theme_id]
        return theme_fallback

    return None
