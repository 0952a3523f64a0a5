"""依存ツールチェッカー"""

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass


@dataclass(frozen=True)
class CheckResult:
    """チェック結果"""

    name: str
    required: bool
    found: bool
    version: str | None
    message: str | None


@dataclass(frozen=True)
class DependencyInfo:
    """依存ツール情報

    min_versionはJavaのメジャーバージョン（"1.8"は8として扱う）で比較する。
    """

    name: str
    command: str
    version_flag: str
    required: bool
    min_version: str | None = None


DEPENDENCIES: list[DependencyInfo] = [
    DependencyInfo(
        name="Java Runtime",
        command="java",
        version_flag="-version",
        required=True,
        min_version="8",
    ),
    DependencyInfo(
        name="jarsigner",
        command="jarsigner",
        version_flag="-help",
        required=True,
    ),
    DependencyInfo(
        name="keytool",
        command="keytool",
        version_flag="-help",
        required=False,
    ),
]


def _extract_version(output: str) -> str | None:
    """コマンド出力からバージョン番号を抽出する

    java -version の出力（例: openjdk version "17.0.9"）を想定する。
    jarsigner/keytool -help はバージョンを出力しないためNoneになる。
    """
    for pattern in (r'version\s+"([^"]+)"', r"(\d+\.\d+\.\d+)"):
        match = re.search(pattern, output, re.IGNORECASE)
        if match:
            return match.group(1)
    return None


def _major_version(version: str) -> int | None:
    """Javaのバージョン文字列からメジャーバージョンを取得する"""
    parts = re.findall(r"\d+", version)
    if not parts:
        return None
    major = int(parts[0])
    if major == 1 and len(parts) > 1:
        return int(parts[1])
    return major


def _missing(info: DependencyInfo, message: str, version: str | None = None) -> CheckResult:
    return CheckResult(
        name=info.name,
        required=info.required,
        found=False,
        version=version,
        message=message,
    )


def check_dependency(info: DependencyInfo) -> CheckResult:
    """単一の依存ツールをチェックする"""
    try:
        result = subprocess.run(
            [info.command, info.version_flag],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except FileNotFoundError:
        return _missing(info, f"コマンド '{info.command}' が見つかりません")
    except subprocess.TimeoutExpired:
        return _missing(info, f"コマンド '{info.command}' がタイムアウトしました")
    except OSError as e:
        return _missing(info, f"コマンド実行エラー: {e}")

    # java -version はstderrに出力する
    version = _extract_version(result.stdout + result.stderr)

    if info.min_version and version:
        major = _major_version(version)
        required_major = _major_version(info.min_version)
        if major is not None and required_major is not None and major < required_major:
            return _missing(
                info,
                f"バージョン {info.min_version} 以上が必要です",
                version=version,
            )

    return CheckResult(
        name=info.name,
        required=info.required,
        found=True,
        version=version,
        message=None,
    )


def check_all_dependencies() -> list[CheckResult]:
    """全ての依存ツールをチェックする"""
    return [check_dependency(info) for info in DEPENDENCIES]
