"""
セル値の正規化ユーティリティ
"""

import datetime
import math
from decimal import Decimal
from typing import Any

from src.excel.models import CellKind


def normalize_cell_value(value: Any) -> tuple[str | int | float, CellKind]:
    """
    セル値をグリッド表示用の値と種類に変換

    Args:
        value: openpyxl / xlrd から取得したセル値

    Returns:
        (value, kind)のタプル
        - 数値: そのまま / "number"
        - None・空文字: "" / "empty"
        - bool: "TRUE" / "FALSE"（text）
        - 日付・時刻: ISO形式の文字列（text）
        - その他: str()（text）
    """
    if value is None:
        return ("", "empty")

    # boolはintのサブクラスなので先に判定
    if isinstance(value, bool):
        return ("TRUE" if value else "FALSE", "text")

    if isinstance(value, (int, float)):
        return (value, "number")

    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return (value.isoformat(), "text")

    text = str(value)
    if text == "":
        return ("", "empty")
    return (text, "text")


def format_number(value: int | float) -> str:
    """
    数値をロケール非依存の文字列に変換

    JavaScriptの Number.prototype.toString と同じ表記
    （最短の往復可能な桁、1e-7未満と1e21以上のみ指数表記）

    Examples:
        - 25 -> "25"
        - 25.0 -> "25"
        - 0.00001 -> "0.00001"
        - 1e-7 -> "1e-7"
        - 1e21 -> "1e+21"
        - nan -> "NaN"
    """
    if isinstance(value, int) and abs(value) < 10**21:
        return str(value)

    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    # reprは最短の往復可能な桁を返す
    sign, digit_tuple, exponent = Decimal(repr(value)).as_tuple()
    digits = "".join(str(d) for d in digit_tuple).rstrip("0")
    exponent += len(digit_tuple) - len(digits)
    k = len(digits)
    # 値 = 0.digits × 10^n
    n = exponent + k
    prefix = "-" if sign else ""

    if k <= n <= 21:
        return prefix + digits + "0" * (n - k)
    if 0 < n <= 21:
        return prefix + digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return prefix + "0." + "0" * (-n) + digits

    exp = n - 1
    exp_text = f"e+{exp}" if exp >= 0 else f"e-{-exp}"
    mantissa = digits if k == 1 else digits[0] + "." + digits[1:]
    return prefix + mantissa + exp_text


def stringify_value(value: str | int | float) -> str:
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)
