"""CLI entry point for jarsign."""

from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from jarsign import __version__
from jarsign.commandline import CommandLineBuilder
from jarsign.config import ConfigError, JarSignConfig, get_default_config, load_config
from jarsign.doctor import check_all_dependencies
from jarsign.logger import LogConfig, SignerLogger, VerboseLevel
from jarsign.password import KEYPASS_ENV, STOREPASS_ENV, DefaultPasswordProvider, PasswordError
from jarsign.request import JarSignerRequest, SignOptions, sign_request, verify_request
from jarsign.runner import DefaultJarSignerRunner, JarSignerError
from jarsign.types import ExitCode

app = typer.Typer(help="JDKのjarsignerでJARファイルに署名・検証するCLIツール")
console = Console()

ArchiveArg = Annotated[Path, typer.Argument(help="対象のJARファイル")]
AliasArg = Annotated[str | None, typer.Argument(help="キーストア内のエイリアス")]
KeystoreOpt = Annotated[str | None, typer.Option(help="キーストアのパスまたはURL")]
StoretypeOpt = Annotated[str | None, typer.Option(help="キーストアの種類")]
ProviderNameOpt = Annotated[str | None, typer.Option(help="暗号サービスプロバイダ名")]
ProviderClassOpt = Annotated[str | None, typer.Option(help="プロバイダのクラス名")]
ProviderArgOpt = Annotated[str | None, typer.Option(help="プロバイダへの引数")]
ProtectedOpt = Annotated[
    bool | None,
    typer.Option("--protected/--no-protected", help="保護された認証パスを使用するか"),
]
MaxMemoryOpt = Annotated[str | None, typer.Option(help="JVMの最大ヒープサイズ（例: 512m）")]
ExtraArgOpt = Annotated[
    list[str] | None, typer.Option("--arg", help="jarsignerにそのまま渡す引数（複数指定可）")
]
ConfigOpt = Annotated[Path | None, typer.Option("-c", "--config", help="設定ファイル（YAML）")]
JarsignerOpt = Annotated[Path | None, typer.Option(help="jarsignerのパス")]
WorkingDirOpt = Annotated[Path | None, typer.Option(help="jarsignerの作業ディレクトリ")]
ToolVerboseOpt = Annotated[
    bool, typer.Option("--jarsigner-verbose", help="jarsignerに-verboseを渡す")
]
VerboseOpt = Annotated[int, typer.Option("-v", "--verbose", count=True, help="詳細ログ出力")]
LogFileOpt = Annotated[Path | None, typer.Option(help="ログファイル出力先")]
PromptOpt = Annotated[
    bool, typer.Option("--prompt-password", help="環境変数が未設定ならパスワードを入力")
]
DryRunOpt = Annotated[bool, typer.Option("--dry-run", help="実行せずにコマンドラインを表示")]
TimeoutOpt = Annotated[int | None, typer.Option(help="jarsignerタイムアウト（秒）")]


def _load_config(path: Path | None) -> JarSignConfig:
    """設定ファイルを読み込む（未指定ならデフォルト）"""
    if path is None:
        return get_default_config()
    try:
        return load_config(path)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT) from e


def _create_logger(verbose: int, log_file: Path | None) -> SignerLogger:
    level = VerboseLevel(min(verbose, VerboseLevel.DEBUG))
    return SignerLogger(LogConfig(verbose_level=level, log_file=log_file))


def _resolve_password(env_var: str, prompt: str, interactive: bool) -> str | None:
    try:
        return DefaultPasswordProvider().resolve(env_var, prompt, interactive)
    except PasswordError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT) from e


def _common_fields(
    config: JarSignConfig,
    alias: str | None,
    keystore: str | None,
    storetype: str | None,
    provider_name: str | None,
    provider_class: str | None,
    provider_arg: str | None,
    protected: bool | None,
    max_memory: str | None,
    extra_args: list[str] | None,
    working_dir: Path | None,
    tool_verbose: bool,
    storepass: str | None,
) -> dict[str, Any]:
    """署名・検証で共通のリクエスト項目を組み立てる（オプションが設定ファイルより優先）"""
    return {
        "working_directory": working_dir,
        "alias": alias or config.keystore.alias,
        "keystore": keystore or config.keystore.path,
        "storepass": storepass,
        "storetype": storetype or config.keystore.type,
        "provider_name": provider_name or config.provider.name,
        "provider_class": provider_class or config.provider.class_name,
        "provider_arg": provider_arg or config.provider.arg,
        "verbose": tool_verbose,
        "protected_authentication_path": config.protected if protected is None else protected,
        "max_memory": max_memory or config.max_memory,
        "arguments": tuple(config.arguments) + tuple(extra_args or ()),
    }


def _run(
    request: JarSignerRequest,
    config: JarSignConfig,
    jarsigner: Path | None,
    timeout: int | None,
    logger: SignerLogger,
    dry_run: bool,
) -> DefaultJarSignerRunner:
    """ランナーを準備し、dry-runの場合はコマンドラインを表示して終了する"""
    runner = DefaultJarSignerRunner(
        logger=logger,
        timeout=timeout or config.timeout,
        jarsigner_file=jarsigner or config.jarsigner,
    )

    if dry_run:
        jarsigner_path = runner.find_jarsigner() or jarsigner or config.jarsigner or "jarsigner"
        command_line = CommandLineBuilder(jarsigner_file=jarsigner_path, logger=logger).build(
            request
        )
        console.print(str(command_line), markup=False, highlight=False, soft_wrap=True)
        raise typer.Exit(ExitCode.SUCCESS)

    archive = request.archive
    if request.working_directory is not None and not archive.is_absolute():
        archive = request.working_directory / archive
    if not archive.exists():
        console.print(f"[red]Error: JARファイルが見つかりません: {request.archive}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT)

    if runner.find_jarsigner() is None:
        console.print("[red]Error: jarsignerが見つかりません（jarsign doctorで確認できます）[/red]")
        raise typer.Exit(ExitCode.DEPENDENCY_ERROR)

    return runner


@app.command()
def sign(
    archive: ArchiveArg,
    alias: AliasArg = None,
    keystore: KeystoreOpt = None,
    storetype: StoretypeOpt = None,
    provider_name: ProviderNameOpt = None,
    provider_class: ProviderClassOpt = None,
    provider_arg: ProviderArgOpt = None,
    protected: ProtectedOpt = None,
    max_memory: MaxMemoryOpt = None,
    extra_args: ExtraArgOpt = None,
    sigfile: Annotated[str | None, typer.Option(help=".SF/.DSAファイルのベース名")] = None,
    signed_jar: Annotated[Path | None, typer.Option(help="署名済みJARの出力先")] = None,
    tsa: Annotated[str | None, typer.Option(help="タイムスタンプ局のURL")] = None,
    tsacert: Annotated[str | None, typer.Option(help="TSA証明書のエイリアス")] = None,
    tsa_policy_id: Annotated[str | None, typer.Option(help="TSAポリシーのOID")] = None,
    tsa_digest_alg: Annotated[str | None, typer.Option(help="TSAのダイジェストアルゴリズム")] = None,
    certchain: Annotated[Path | None, typer.Option(help="証明書チェーンファイル")] = None,
    config_path: ConfigOpt = None,
    jarsigner: JarsignerOpt = None,
    working_dir: WorkingDirOpt = None,
    tool_verbose: ToolVerboseOpt = False,
    verbose: VerboseOpt = 0,
    log_file: LogFileOpt = None,
    prompt_password: PromptOpt = False,
    dry_run: DryRunOpt = False,
    timeout: TimeoutOpt = None,
) -> None:
    """JARファイルに署名する"""
    config = _load_config(config_path)

    storepass = _resolve_password(STOREPASS_ENV, "Enter keystore password: ", prompt_password)
    keypass = _resolve_password(KEYPASS_ENV, "Enter key password: ", False)

    options = SignOptions(
        keypass=keypass,
        sigfile=sigfile or config.sigfile,
        tsa_location=tsa or config.tsa.url,
        tsa_alias=tsacert or config.tsa.cert,
        tsa_policy_id=tsa_policy_id or config.tsa.policy_id,
        tsa_digest_alg=tsa_digest_alg or config.tsa.digest_alg,
        signed_jar=signed_jar,
        cert_chain=certchain or config.certchain,
    )
    request = sign_request(
        archive,
        options,
        **_common_fields(
            config,
            alias,
            keystore,
            storetype,
            provider_name,
            provider_class,
            provider_arg,
            protected,
            max_memory,
            extra_args,
            working_dir,
            tool_verbose,
            storepass,
        ),
    )

    with _create_logger(verbose, log_file) as logger:
        runner = _run(request, config, jarsigner, timeout, logger, dry_run)
        logger.verbose(f"署名中: {archive}")
        try:
            signed = runner.sign(request)
        except JarSignerError as e:
            console.print(f"[red]署名失敗: {e}[/red]")
            raise typer.Exit(ExitCode.ERROR) from e

    console.print(f"[green]署名完了: {signed}[/green]")
    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def verify(
    archive: ArchiveArg,
    alias: AliasArg = None,
    certs: Annotated[bool, typer.Option("--certs", help="証明書情報も表示")] = False,
    keystore: KeystoreOpt = None,
    storetype: StoretypeOpt = None,
    provider_name: ProviderNameOpt = None,
    provider_class: ProviderClassOpt = None,
    provider_arg: ProviderArgOpt = None,
    protected: ProtectedOpt = None,
    max_memory: MaxMemoryOpt = None,
    extra_args: ExtraArgOpt = None,
    config_path: ConfigOpt = None,
    jarsigner: JarsignerOpt = None,
    working_dir: WorkingDirOpt = None,
    tool_verbose: ToolVerboseOpt = False,
    verbose: VerboseOpt = 0,
    log_file: LogFileOpt = None,
    prompt_password: PromptOpt = False,
    dry_run: DryRunOpt = False,
    timeout: TimeoutOpt = None,
) -> None:
    """JARファイルの署名を検証する"""
    config = _load_config(config_path)

    storepass = _resolve_password(STOREPASS_ENV, "Enter keystore password: ", prompt_password)

    request = verify_request(
        archive,
        certs=certs,
        **_common_fields(
            config,
            alias,
            keystore,
            storetype,
            provider_name,
            provider_class,
            provider_arg,
            protected,
            max_memory,
            extra_args,
            working_dir,
            tool_verbose,
            storepass,
        ),
    )

    with _create_logger(verbose, log_file) as logger:
        runner = _run(request, config, jarsigner, timeout, logger, dry_run)
        try:
            result = runner.execute(request)
        except JarSignerError as e:
            console.print(f"[red]検証失敗: {e}[/red]")
            raise typer.Exit(ExitCode.ERROR) from e

    if certs or tool_verbose:
        console.print(result.stdout, markup=False, highlight=False, soft_wrap=True)

    if result.verified:
        console.print(f"[green]検証成功: {archive}[/green]")
        raise typer.Exit(ExitCode.SUCCESS)

    console.print(f"[red]検証失敗: {archive}[/red]")
    detail = result.stderr.strip() or result.stdout.strip()
    if detail and not (certs or tool_verbose):
        console.print(detail.splitlines()[-1], markup=False, highlight=False)
    raise typer.Exit(ExitCode.VERIFY_FAILED)


@app.command()
def doctor() -> None:
    """依存ツールをチェックする"""
    results = check_all_dependencies()

    table = Table(title="依存ツールチェック結果")
    table.add_column("ステータス", justify="center")
    table.add_column("ツール名", justify="left")
    table.add_column("バージョン", justify="left")
    table.add_column("必須", justify="center")
    table.add_column("メッセージ", justify="left")

    has_missing_required = False

    for result in results:
        if result.found:
            status = "[green]✓[/green]"
        else:
            status = "[red]✗[/red]"
            if result.required:
                has_missing_required = True

        required_str = "[yellow]必須[/yellow]" if result.required else "オプション"
        table.add_row(status, result.name, result.version or "-", required_str, result.message or "")

    console.print(table)

    if has_missing_required:
        console.print("\n[red]エラー: 必須ツールが不足しています[/red]")
        raise typer.Exit(ExitCode.DEPENDENCY_ERROR)

    console.print("\n[green]すべての必須ツールが利用可能です[/green]")
    raise typer.Exit(ExitCode.SUCCESS)


def version_callback(value: bool) -> None:
    """バージョン表示コールバック"""
    if value:
        typer.echo(f"jarsign {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="バージョンを表示する",
        ),
    ] = False,
) -> None:
    """jarsign CLI - jarsignerによるJAR署名・検証"""
    pass
