"""ログ出力のインターフェース定義

このモジュールは、jarsignの実行ログ出力を担当する。
VerboseLevel (詳細ログレベル)に応じた出力制御を行い、
外部コマンドのログではパスワードなどの機密引数を必ずマスクする。
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from jarsign.commandline import CommandLine


class VerboseLevel(IntEnum):
    """詳細ログレベル

    ログ出力の詳細度を制御するための列挙型。
    QUIET: エラーのみ出力
    NORMAL: 結果サマリを出力
    VERBOSE: 処理対象ファイルも出力（-vオプション）
    DEBUG: 外部コマンド実行ログも出力（-vvオプション）
    """

    QUIET = -1
    NORMAL = 0
    VERBOSE = 1
    DEBUG = 2


@dataclass
class LogConfig:
    """ログ設定

    Attributes:
        verbose_level: ログの詳細度レベル
        log_file: ログ出力先ファイルパス（Noneの場合はファイル出力なし）
        use_color: カラー出力を使用するか
    """

    verbose_level: VerboseLevel = VerboseLevel.NORMAL
    log_file: Path | None = None
    use_color: bool = True


class SignerLogger:
    """jarsign実行ログ出力クラス

    VerboseLevelに応じてメッセージのフィルタリングを行う。
    ファイル出力が設定されている場合はレベルに関係なくすべて記録する。

    使用例:
        >>> logger = SignerLogger(LogConfig(verbose_level=VerboseLevel.DEBUG))
        >>> logger.info("署名を開始します")
        >>> logger.log_command(command_line, "jar signed.")
    """

    _ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*m")

    def __init__(self, config: LogConfig) -> None:
        """ロガーを初期化する

        Args:
            config: ログ設定
        """
        self._config = config
        self._log_file: TextIO | None = None
        if config.log_file:
            # __exit__でファイルを閉じる
            self._log_file = open(config.log_file, "w", encoding="utf-8")  # noqa: SIM115

    def __enter__(self) -> SignerLogger:
        """コンテキストマネージャのエントリポイント"""
        return self

    def __exit__(self, *args: object) -> None:
        """コンテキストマネージャの終了処理"""
        if self._log_file:
            self._log_file.close()
            self._log_file = None

    @property
    def config(self) -> LogConfig:
        """ログ設定を取得する"""
        return self._config

    def _print(self, message: str, file: TextIO | None = None) -> None:
        if file is None:
            file = sys.stdout
        print(message, file=file)

    def _log_to_file(self, level: str, message: str) -> None:
        if self._log_file:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            clean_message = self._strip_ansi(message)
            self._log_file.write(f"[{timestamp}] {level}: {clean_message}\n")
            self._log_file.flush()

    def _strip_ansi(self, text: str) -> str:
        return self._ANSI_ESCAPE_PATTERN.sub("", text)

    def info(self, message: str) -> None:
        """情報メッセージを出力する（NORMAL以上）"""
        if self._config.verbose_level >= VerboseLevel.NORMAL:
            self._print(message)
        self._log_to_file("INFO", message)

    def verbose(self, message: str) -> None:
        """詳細メッセージを出力する（VERBOSE以上）"""
        if self._config.verbose_level >= VerboseLevel.VERBOSE:
            self._print(message)
        self._log_to_file("VERBOSE", message)

    def debug(self, message: str) -> None:
        """デバッグメッセージを出力する（DEBUG以上）"""
        if self._config.verbose_level >= VerboseLevel.DEBUG:
            self._print(message)
        self._log_to_file("DEBUG", message)

    def error(self, message: str) -> None:
        """エラーメッセージを出力する（常に出力）"""
        self._print(f"エラー: {message}", file=sys.stderr)
        self._log_to_file("ERROR", message)

    def warning(self, message: str) -> None:
        """警告メッセージを出力する（QUIET以上）"""
        if self._config.verbose_level > VerboseLevel.QUIET:
            self._print(f"警告: {message}")
        self._log_to_file("WARNING", message)

    def log_command(self, command_line: CommandLine, output: str) -> None:
        """外部コマンド実行をログする（DEBUG以上）

        コマンドラインはマスク済みの表現で出力するため、
        パスワード引数の値がログに残ることはない。

        Args:
            command_line: 実行したコマンドライン
            output: コマンドの出力
        """
        self.debug(f"実行: {command_line}")
        if output:
            for line in output.splitlines():
                self.debug(f"  > {line}")


DEFAULT_LOGGER = SignerLogger(LogConfig())
