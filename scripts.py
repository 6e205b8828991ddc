"""
MCPサーバーの開発用ユーティリティコマンド
"""

import subprocess

# 品質チェック対象ディレクトリの定数
QUALITY_CHECK_DIRS = ["src", "tests"]


def lint():
    """
    ruffでコードの静的解析を実行する
    """
    cmd = ["ruff", "check"] + QUALITY_CHECK_DIRS
    subprocess.run(cmd)


def format():
    """
    ruffでコードフォーマットを実行する
    """
    cmd = ["ruff", "format"] + QUALITY_CHECK_DIRS
    subprocess.run(cmd)


def type_check():
    """
    型チェックを実行する (ty)
    """
    cmd = ["ty", "check", "src"]
    subprocess.run(cmd)


def test():
    """
    pytestでテストを実行する
    """
    result = subprocess.run(["pytest"])
    exit(result.returncode)


def check():
    """
    型チェック、Lint、テストをまとめて実行する（修正はしない）
    """
    steps = [
        ("型チェック", ["ty", "check", "src"]),
        ("Lint", ["ruff", "check"] + QUALITY_CHECK_DIRS),
        ("テスト", ["pytest", "-q"]),
    ]

    failed = []
    for name, cmd in steps:
        print(f"🔍 {name}を実行中...")
        result = subprocess.run(cmd, capture_output=True)
        status = "✅ PASS" if result.returncode == 0 else "❌ FAIL"
        print(f"{name}: {status}")
        if result.returncode != 0:
            failed.append(name)
            print(result.stdout.decode())
            print(result.stderr.decode())

    if failed:
        exit(1)
    print("\n🎉 すべてのチェックが成功しました！")
    exit(0)
