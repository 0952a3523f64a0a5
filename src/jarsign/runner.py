"""jarsigner実行

このモジュールはjarsignerコマンドの検索と実行を提供します。
コマンドラインの組み立てはCommandLineBuilderに委譲し、
ここでは終了コードの判定とログ出力のみを行います。
"""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from jarsign.commandline import CommandLine, CommandLineBuilder, CommandLineConfigurationError
from jarsign.logger import DEFAULT_LOGGER, SignerLogger
from jarsign.request import JarSignerRequest, SignOptions


class JarSignerError(Exception):
    """jarsigner実行に関する基本例外クラス

    コマンド不在、対象JARの不在、署名処理の失敗、タイムアウトなどを表します。
    """

    pass


@dataclass(frozen=True)
class JarSignerResult:
    """jarsigner実行結果

    Attributes:
        returncode: 終了コード
        stdout: 標準出力
        stderr: 標準エラー出力
        command_line: 実行したコマンドライン
    """

    returncode: int
    stdout: str
    stderr: str
    command_line: CommandLine

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def verified(self) -> bool:
        """検証に成功したか

        jarsignerは未署名のJARに対しても終了コード0で"jar is unsigned"を出力する。
        """
        return self.success and "jar is unsigned" not in self.stdout


class JarSignerRunner(Protocol):
    """jarsignerコマンドを実行するためのインターフェース"""

    def sign(self, request: JarSignerRequest) -> Path:
        """JARファイルに署名する

        Returns:
            署名されたJARファイルのパス

        Raises:
            JarSignerError: 署名処理に失敗した場合
        """
        ...

    def verify(self, request: JarSignerRequest) -> bool:
        """JARファイルの署名を検証する

        Returns:
            署名が有効な場合はTrue

        Raises:
            JarSignerError: 検証処理を実行できなかった場合
        """
        ...

    def find_jarsigner(self) -> Path | None:
        """jarsignerコマンドのパスを検索する"""
        ...


class DefaultJarSignerRunner:
    """jarsignerコマンドを実行するデフォルト実装

    JDKのjarsignerをsubprocessで実行します。
    """

    def __init__(
        self,
        logger: SignerLogger | None = None,
        timeout: int | None = None,
        jarsigner_file: Path | None = None,
    ) -> None:
        """ランナーを初期化する

        Args:
            logger: ログ出力先（省略時はDEFAULT_LOGGER）
            timeout: コマンドのタイムアウト秒数（Noneの場合は無制限）
            jarsigner_file: jarsignerのパス（省略時は自動検索）
        """
        self._logger = logger or DEFAULT_LOGGER
        self._timeout = timeout
        self._jarsigner_file = jarsigner_file

    def find_jarsigner(self) -> Path | None:
        """jarsignerコマンドのパスを検索する

        明示的に指定されたパス、JAVA_HOME/bin、JAVA_HOMEがJREの場合の
        親ディレクトリのbin、システムPATHの順に検索します。
        明示的な指定がディレクトリを含まないコマンド名の場合はPATHから解決します。

        Returns:
            jarsignerコマンドの絶対パス。見つからない場合はNone。
        """
        if self._jarsigner_file is not None:
            explicit = self._jarsigner_file
            if explicit.exists():
                # 作業ディレクトリを変更して実行するため絶対パスにする
                return explicit.absolute()
            if explicit.parent == Path("."):
                which_result = shutil.which(str(explicit))
                if which_result:
                    return Path(which_result)
            return None

        executable = "jarsigner.exe" if os.name == "nt" else "jarsigner"
        java_home = os.environ.get("JAVA_HOME")

        if java_home:
            java_home_path = Path(java_home)
            for bin_dir in (java_home_path / "bin", java_home_path.parent / "bin"):
                jarsigner_path = bin_dir / executable
                if jarsigner_path.exists():
                    return jarsigner_path

        which_result = shutil.which("jarsigner")
        if which_result:
            return Path(which_result)

        return None

    def execute(self, request: JarSignerRequest) -> JarSignerResult:
        """リクエストに従ってjarsignerを実行する

        Args:
            request: jarsigner呼び出し要求

        Returns:
            実行結果（終了コードの判定は呼び出し側で行う）

        Raises:
            JarSignerError: JARが存在しない、jarsignerが見つからない、
                          またはプロセスを起動できなかった場合
        """
        archive = request.archive
        if request.working_directory is not None and not archive.is_absolute():
            archive = request.working_directory / archive
        if not archive.exists():
            raise JarSignerError(f"Archive not found: {request.archive}")

        jarsigner_path = self.find_jarsigner()
        if jarsigner_path is None:
            raise JarSignerError("jarsigner command not found")

        builder = CommandLineBuilder(jarsigner_file=jarsigner_path, logger=self._logger)
        try:
            command_line = builder.build(request)
        except CommandLineConfigurationError as e:
            raise JarSignerError(f"Invalid jarsigner configuration: {e}") from e

        try:
            result = subprocess.run(
                command_line.argv,
                cwd=command_line.working_directory,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise JarSignerError(f"jarsigner timed out after {self._timeout} seconds") from e
        except OSError as e:
            raise JarSignerError(f"Failed to run jarsigner: {e}") from e

        self._logger.log_command(command_line, result.stdout + result.stderr)

        return JarSignerResult(
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
            command_line=command_line,
        )

    def sign(self, request: JarSignerRequest) -> Path:
        """JARファイルに署名する

        Args:
            request: 署名オプションを持つjarsigner呼び出し要求

        Returns:
            署名されたJARファイルのパス（-signedjar指定時はその出力先）

        Raises:
            JarSignerError: 署名要求でない場合、または署名処理に失敗した場合
        """
        if not isinstance(request.variant, SignOptions):
            raise JarSignerError("sign requires a request with sign options")

        result = self.execute(request)
        if not result.success:
            message = result.stderr.strip() or result.stdout.strip()
            raise JarSignerError(f"jarsigner sign failed (exit {result.returncode}): {message}")

        return request.variant.signed_jar or request.archive

    def verify(self, request: JarSignerRequest) -> bool:
        """JARファイルの署名を検証する

        Args:
            request: 検証オプションを持つjarsigner呼び出し要求

        Returns:
            署名が有効な場合はTrue、無効または未署名の場合はFalse

        Raises:
            JarSignerError: 検証要求でない場合、または実行できなかった場合
        """
        if not request.is_verify:
            raise JarSignerError("verify requires a request with verify options")

        return self.execute(request).verified
