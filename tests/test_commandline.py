"""CommandLineBuilderのテスト

リクエストからjarsignerの引数列が正しい順序で構築され、
パスワードがマスクされることを検証する。
"""

from pathlib import Path

import pytest

from jarsign.commandline import (
    MASK,
    Arg,
    CommandLine,
    CommandLineBuilder,
    CommandLineConfigurationError,
)
from jarsign.logger import LogConfig, SignerLogger, VerboseLevel
from jarsign.request import (
    JarSignerRequest,
    SignOptions,
    VerifyOptions,
    sign_request,
    verify_request,
)


@pytest.fixture
def builder() -> CommandLineBuilder:
    return CommandLineBuilder(jarsigner_file="jarsigner")


class TestArg:
    """Argのテスト"""

    def test_display_plain_value(self) -> None:
        """正常系: マスク対象外はそのまま表示"""
        assert Arg("a.jar").display == "a.jar"

    def test_display_masked_value(self) -> None:
        """正常系: マスク対象はマスク文字列で表示"""
        arg = Arg("secret", masked=True)
        assert arg.display == MASK
        assert arg.value == "secret"


class TestCommandLine:
    """CommandLineのテスト"""

    def test_create_arg_appends(self) -> None:
        cli = CommandLine(executable="jarsigner")
        cli.create_arg("-keystore")
        cli.create_arg("ks.jks")
        assert cli.argv == ["jarsigner", "-keystore", "ks.jks"]

    def test_create_arg_insert_at_start(self) -> None:
        cli = CommandLine(executable="jarsigner")
        cli.create_arg("a.jar")
        cli.create_arg("-verify", insert_at_start=True)
        assert cli.argv == ["jarsigner", "-verify", "a.jar"]

    def test_masked_argv_hides_secret(self) -> None:
        cli = CommandLine(executable="jarsigner")
        cli.create_arg("-storepass")
        cli.create_arg("secret", masked=True)
        assert cli.masked_argv == ["jarsigner", "-storepass", MASK]
        assert "secret" in cli.argv

    def test_str_never_contains_secret(self) -> None:
        cli = CommandLine(executable="/opt/jdk/bin/jarsigner")
        cli.create_arg("-storepass")
        cli.create_arg("p@ss word", masked=True)
        cli.create_arg("my app.jar")
        rendered = str(cli)
        assert "p@ss" not in rendered
        assert rendered == "/opt/jdk/bin/jarsigner -storepass ***** 'my app.jar'"


class TestCommandLineBuilderRequiredState:
    """構築前の設定チェックのテスト"""

    def test_missing_jarsigner_file(self) -> None:
        """異常系: 実行ファイルパス未設定で設定エラー"""
        builder = CommandLineBuilder()
        with pytest.raises(CommandLineConfigurationError, match="jarsigner file"):
            builder.build(JarSignerRequest(archive=Path("a.jar")))

    def test_empty_jarsigner_file(self) -> None:
        """異常系: 空文字列の実行ファイルパスで設定エラー"""
        builder = CommandLineBuilder(jarsigner_file="")
        with pytest.raises(CommandLineConfigurationError):
            builder.build(JarSignerRequest(archive=Path("a.jar")))

    def test_missing_logger(self) -> None:
        """異常系: ロガー未設定で設定エラー"""
        builder = CommandLineBuilder(jarsigner_file="jarsigner", logger=None)
        with pytest.raises(CommandLineConfigurationError, match="logger"):
            builder.build(JarSignerRequest(archive=Path("a.jar")))

    def test_configure_after_construction(self) -> None:
        """正常系: 構築後に実行ファイルパスを設定できる"""
        builder = CommandLineBuilder()
        builder.jarsigner_file = Path("/opt/jdk/bin/jarsigner")
        cli = builder.build(JarSignerRequest(archive=Path("a.jar")))
        assert cli.executable == "/opt/jdk/bin/jarsigner"


class TestCommandLineBuilderCommon:
    """共通オプションのテスト"""

    def test_archive_only(self, builder: CommandLineBuilder) -> None:
        """正常系: JARのみ指定時は実行ファイルとJARのみ"""
        cli = builder.build(JarSignerRequest(archive=Path("a.jar")))
        assert cli.argv == ["jarsigner", "a.jar"]
        assert cli.working_directory is None

    def test_keystore_and_storepass(self, builder: CommandLineBuilder) -> None:
        """正常系: storepassはマスク対象として出力される"""
        request = JarSignerRequest(archive=Path("a.jar"), keystore="ks.jks", storepass="secret")
        cli = builder.build(request)

        assert cli.argv == ["jarsigner", "-keystore", "ks.jks", "-storepass", "secret", "a.jar"]
        assert cli.args[3] == Arg("secret", masked=True)
        assert [arg.masked for arg in cli.args] == [False, False, False, True, False]

    def test_all_common_options_in_order(self, builder: CommandLineBuilder) -> None:
        """正常系: 共通オプションが固定の順序で出力される"""
        request = JarSignerRequest(
            archive=Path("a.jar"),
            alias="release",
            keystore="ks.p12",
            storepass="secret",
            storetype="PKCS12",
            provider_name="SunPKCS11",
            provider_class="sun.security.pkcs11.SunPKCS11",
            provider_arg="pkcs11.cfg",
            verbose=True,
            protected_authentication_path=True,
            max_memory="512m",
            arguments=("-strict", "-J-Duser.language=en"),
        )
        cli = builder.build(request)

        assert cli.argv == [
            "jarsigner",
            "-verbose",
            "-keystore",
            "ks.p12",
            "-storepass",
            "secret",
            "-storetype",
            "PKCS12",
            "-providerName",
            "SunPKCS11",
            "-providerClass",
            "sun.security.pkcs11.SunPKCS11",
            "-providerArg",
            "pkcs11.cfg",
            "-protected",
            "-J-Xmx512m",
            "-strict",
            "-J-Duser.language=en",
            "a.jar",
            "release",
        ]

    @pytest.mark.parametrize(
        "field",
        [
            pytest.param("keystore", id="keystore"),
            pytest.param("storepass", id="storepass"),
            pytest.param("storetype", id="storetype"),
            pytest.param("provider_name", id="provider_name"),
            pytest.param("provider_class", id="provider_class"),
            pytest.param("provider_arg", id="provider_arg"),
            pytest.param("max_memory", id="max_memory"),
            pytest.param("alias", id="alias"),
        ],
    )
    def test_empty_string_is_omitted(self, builder: CommandLineBuilder, field: str) -> None:
        """正常系: 空文字列のフィールドはオプションを出力しない"""
        request = JarSignerRequest(archive=Path("a.jar"), **{field: ""})
        assert builder.build(request).argv == ["jarsigner", "a.jar"]

    def test_working_directory_is_copied(self, builder: CommandLineBuilder, tmp_path: Path) -> None:
        request = JarSignerRequest(archive=Path("a.jar"), working_directory=tmp_path)
        assert builder.build(request).working_directory == tmp_path

    def test_build_does_not_touch_filesystem(self, builder: CommandLineBuilder) -> None:
        """正常系: 存在しないパスもそのまま渡される"""
        request = JarSignerRequest(archive=Path("/no/such/dir/missing.jar"), keystore="nope.jks")
        cli = builder.build(request)
        assert cli.argv[-1] == "/no/such/dir/missing.jar"


class TestCommandLineBuilderSign:
    """署名オプションのテスト"""

    def test_sign_without_options(self, builder: CommandLineBuilder) -> None:
        cli = builder.build(sign_request(Path("a.jar")))
        assert cli.argv == ["jarsigner", "a.jar"]

    def test_sign_options_between_common_and_archive(
        self, builder: CommandLineBuilder, tmp_path: Path
    ) -> None:
        """正常系: 署名オプションは共通オプションの後、JARの前に出力される"""
        options = SignOptions(
            keypass="keysecret",
            sigfile="SIGNER",
            tsa_location="http://tsa.example.com",
            tsa_alias="tsa",
            tsa_policy_id="1.2.3.4",
            tsa_digest_alg="SHA-256",
            signed_jar=tmp_path / "signed.jar",
            cert_chain=tmp_path / "chain.pem",
        )
        request = sign_request(
            Path("a.jar"),
            options,
            keystore="ks.jks",
            arguments=("-strict",),
            alias="release",
        )
        cli = builder.build(request)

        assert cli.argv == [
            "jarsigner",
            "-keystore",
            "ks.jks",
            "-strict",
            "-keypass",
            "keysecret",
            "-sigfile",
            "SIGNER",
            "-tsa",
            "http://tsa.example.com",
            "-tsacert",
            "tsa",
            "-tsapolicyid",
            "1.2.3.4",
            "-tsadigestalg",
            "SHA-256",
            "-signedjar",
            str(tmp_path / "signed.jar"),
            "-certchain",
            str(tmp_path / "chain.pem"),
            "a.jar",
            "release",
        ]

    def test_keypass_is_masked(self, builder: CommandLineBuilder) -> None:
        cli = builder.build(sign_request(Path("a.jar"), SignOptions(keypass="keysecret")))
        masked = [arg for arg in cli.args if arg.masked]
        assert masked == [Arg("keysecret", masked=True)]
        assert "keysecret" not in str(cli)

    @pytest.mark.parametrize(
        "options",
        [
            pytest.param(SignOptions(tsa_location="   "), id="空白のみのtsa"),
            pytest.param(SignOptions(tsa_alias=""), id="空のtsacert"),
            pytest.param(SignOptions(tsa_policy_id="\t"), id="空白のみのtsapolicyid"),
            pytest.param(SignOptions(tsa_digest_alg=" "), id="空白のみのtsadigestalg"),
        ],
    )
    def test_blank_tsa_options_are_omitted(
        self, builder: CommandLineBuilder, options: SignOptions
    ) -> None:
        """正常系: 空白のみのTSA関連値は未指定として扱う"""
        assert builder.build(sign_request(Path("a.jar"), options)).argv == ["jarsigner", "a.jar"]

    def test_relative_paths_are_made_absolute(self, builder: CommandLineBuilder) -> None:
        """正常系: signedjarとcertchainは絶対パスで出力される"""
        options = SignOptions(signed_jar=Path("out/signed.jar"), cert_chain=Path("chain.pem"))
        cli = builder.build(sign_request(Path("a.jar"), options))

        signed_jar = cli.argv[cli.argv.index("-signedjar") + 1]
        cert_chain = cli.argv[cli.argv.index("-certchain") + 1]
        assert Path(signed_jar).is_absolute()
        assert signed_jar.endswith("signed.jar")
        assert Path(cert_chain).is_absolute()


class TestCommandLineBuilderVerify:
    """検証オプションのテスト"""

    def test_verify_archive_only(self, builder: CommandLineBuilder) -> None:
        cli = builder.build(verify_request(Path("a.jar")))
        assert cli.argv == ["jarsigner", "-verify", "a.jar"]

    @pytest.mark.parametrize(
        "certs,expected_certs",
        [
            pytest.param(True, True, id="正常系: certs指定あり"),
            pytest.param(False, False, id="正常系: certs指定なし"),
        ],
    )
    def test_certs_flag(
        self, builder: CommandLineBuilder, certs: bool, expected_certs: bool
    ) -> None:
        cli = builder.build(verify_request(Path("a.jar"), certs=certs))
        assert ("-certs" in cli.argv) is expected_certs

    def test_verify_is_first_argument(self, builder: CommandLineBuilder) -> None:
        """正常系: -verifyは実行ファイル直後、-certsは共通オプションの後に出力される"""
        request = JarSignerRequest(
            archive=Path("a.jar"),
            keystore="ks.jks",
            verbose=True,
            alias="release",
            variant=VerifyOptions(certs=True),
        )
        cli = builder.build(request)
        assert cli.argv == [
            "jarsigner",
            "-verify",
            "-verbose",
            "-keystore",
            "ks.jks",
            "-certs",
            "a.jar",
            "release",
        ]


class TestCommandLineBuilderLogging:
    """構築時のログ出力のテスト"""

    def test_build_writes_no_log(self, tmp_path: Path) -> None:
        """正常系: コマンドラインのログ出力は実行側が1回だけ行う"""
        log_file = tmp_path / "build.log"
        with SignerLogger(
            LogConfig(verbose_level=VerboseLevel.QUIET, log_file=log_file)
        ) as logger:
            builder = CommandLineBuilder(jarsigner_file="jarsigner", logger=logger)
            builder.build(JarSignerRequest(archive=Path("a.jar"), storepass="secret"))

        assert log_file.read_text(encoding="utf-8") == ""
