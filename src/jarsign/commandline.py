"""jarsignerコマンドライン構築

JarSignerRequestをjarsignerに渡す順序付きの引数列へ変換します。
パスワードに由来する引数はArg.maskedで印を付け、
文字列表現では常にマスク文字列に置き換えます。
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from pathlib import Path

from jarsign.logger import DEFAULT_LOGGER, SignerLogger
from jarsign.request import JarSignerRequest, SignOptions, VerifyOptions

MASK = "*****"


class CommandLineConfigurationError(Exception):
    """コマンドライン構築時の設定エラー

    jarsignerの実行ファイルパスやロガーが設定されていない状態で
    buildが呼ばれた場合に発生します。
    """

    pass


@dataclass(frozen=True)
class Arg:
    """コマンドライン引数1つ分

    Attributes:
        value: 引数の値
        masked: ログや表示でマスクすべき値か
    """

    value: str
    masked: bool = False

    @property
    def display(self) -> str:
        """表示用の値（マスク対象ならマスク文字列）"""
        return MASK if self.masked else self.value


@dataclass
class CommandLine:
    """外部プロセスとして実行するコマンドライン

    Attributes:
        executable: 実行ファイルのパス
        working_directory: 作業ディレクトリ（Noneの場合は現在のディレクトリ）
        args: 実行ファイルに続く引数
    """

    executable: str
    working_directory: Path | None = None
    args: list[Arg] = field(default_factory=list)

    def create_arg(self, value: str, masked: bool = False, insert_at_start: bool = False) -> Arg:
        """引数を追加する

        Args:
            value: 引数の値
            masked: マスク対象か
            insert_at_start: Trueの場合は末尾ではなく先頭に追加する

        Returns:
            追加した引数
        """
        arg = Arg(value=value, masked=masked)
        if insert_at_start:
            self.args.insert(0, arg)
        else:
            self.args.append(arg)
        return arg

    def add_arguments(self, values: tuple[str, ...] | list[str]) -> None:
        """任意の引数をそのまま末尾に追加する"""
        for value in values:
            self.create_arg(value)

    @property
    def argv(self) -> list[str]:
        """プロセス実行用の引数列（マスクなし）"""
        return [self.executable, *(arg.value for arg in self.args)]

    @property
    def masked_argv(self) -> list[str]:
        """表示用の引数列（マスク対象は置換済み）"""
        return [self.executable, *(arg.display for arg in self.args)]

    def __str__(self) -> str:
        return " ".join(
            value if value == MASK else shlex.quote(value) for value in self.masked_argv
        )


def _is_empty(value: str | None) -> bool:
    return value is None or value == ""


def _is_blank(value: str | None) -> bool:
    return value is None or value.strip() == ""


class CommandLineBuilder:
    """JarSignerRequestからCommandLineを構築する

    jarsigner_fileとloggerは構築前に設定しておく必要があります。
    インスタンス間で状態は共有しません。

    使用例:
        >>> builder = CommandLineBuilder(jarsigner_file="jarsigner")
        >>> cli = builder.build(JarSignerRequest(archive=Path("a.jar")))
        >>> cli.argv
        ['jarsigner', 'a.jar']
    """

    def __init__(
        self,
        jarsigner_file: str | Path | None = None,
        logger: SignerLogger | None = DEFAULT_LOGGER,
    ) -> None:
        self.jarsigner_file = jarsigner_file
        self.logger = logger

    def check_required_state(self) -> None:
        """構築に必要な設定が揃っているか確認する

        Raises:
            CommandLineConfigurationError: ロガーまたは実行ファイルパスが未設定の場合
        """
        if self.logger is None:
            raise CommandLineConfigurationError("A logger instance is required.")
        if self.jarsigner_file is None or str(self.jarsigner_file) == "":
            raise CommandLineConfigurationError("A jarsigner file is required.")

    def build(self, request: JarSignerRequest) -> CommandLine:
        """リクエストからコマンドラインを構築する

        引数はjarsignerが要求する固定の順序で出力されます。
        共通オプション、任意引数、署名/検証固有のオプション、
        JARファイル、エイリアスの順です。

        Args:
            request: jarsigner呼び出し要求

        Returns:
            構築したコマンドライン

        Raises:
            CommandLineConfigurationError: 必須の設定が不足している場合
        """
        self.check_required_state()

        cli = CommandLine(
            executable=str(self.jarsigner_file),
            working_directory=request.working_directory,
        )

        if request.verbose:
            cli.create_arg("-verbose")

        self._add_option(cli, "-keystore", request.keystore)
        self._add_option(cli, "-storepass", request.storepass, masked=True)
        self._add_option(cli, "-storetype", request.storetype)
        self._add_option(cli, "-providerName", request.provider_name)
        self._add_option(cli, "-providerClass", request.provider_class)
        self._add_option(cli, "-providerArg", request.provider_arg)

        if request.protected_authentication_path:
            cli.create_arg("-protected")

        if not _is_empty(request.max_memory):
            cli.create_arg(f"-J-Xmx{request.max_memory}")

        cli.add_arguments(request.arguments)

        match request.variant:
            case SignOptions() as options:
                self._build_sign(options, cli)
            case VerifyOptions() as options:
                self._build_verify(options, cli)
            case None:
                pass

        cli.create_arg(str(request.archive))

        if not _is_empty(request.alias):
            cli.create_arg(request.alias)  # type: ignore[arg-type]

        return cli

    def _add_option(
        self, cli: CommandLine, flag: str, value: str | None, masked: bool = False
    ) -> None:
        if not _is_empty(value):
            cli.create_arg(flag)
            cli.create_arg(value, masked=masked)  # type: ignore[arg-type]

    def _build_sign(self, options: SignOptions, cli: CommandLine) -> None:
        self._add_option(cli, "-keypass", options.keypass, masked=True)
        self._add_option(cli, "-sigfile", options.sigfile)

        # TSA関連は空白のみの値も未指定として扱う
        for flag, value in (
            ("-tsa", options.tsa_location),
            ("-tsacert", options.tsa_alias),
            ("-tsapolicyid", options.tsa_policy_id),
            ("-tsadigestalg", options.tsa_digest_alg),
        ):
            if not _is_blank(value):
                cli.create_arg(flag)
                cli.create_arg(value)  # type: ignore[arg-type]

        if options.signed_jar is not None:
            cli.create_arg("-signedjar")
            cli.create_arg(str(options.signed_jar.absolute()))

        if options.cert_chain is not None:
            cli.create_arg("-certchain")
            cli.create_arg(str(options.cert_chain.absolute()))

    def _build_verify(self, options: VerifyOptions, cli: CommandLine) -> None:
        cli.create_arg("-verify", insert_at_start=True)
        if options.certs:
            cli.create_arg("-certs")
