"""jarsignerリクエスト定義

このモジュールはjarsignerコマンドの呼び出し内容を表すデータクラスを定義します。
署名と検証の差分はvariantフィールドに保持する個別のペイロードで表現します。
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class SignOptions:
    """署名時のみ使用するオプション

    Attributes:
        keypass: 秘密鍵のパスワード（ログには出力されない）
        sigfile: .SF/.DSAファイルのベース名
        tsa_location: タイムスタンプ局(TSA)のURL
        tsa_alias: TSA証明書のキーストア内エイリアス
        tsa_policy_id: TSAに要求するポリシーのOID
        tsa_digest_alg: TSAに使用させるダイジェストアルゴリズム
        signed_jar: 署名済みJARの出力先（省略時は入力JARを上書き）
        cert_chain: 証明書チェーンファイルのパス
    """

    keypass: str | None = None
    sigfile: str | None = None
    tsa_location: str | None = None
    tsa_alias: str | None = None
    tsa_policy_id: str | None = None
    tsa_digest_alg: str | None = None
    signed_jar: Path | None = None
    cert_chain: Path | None = None


@dataclass(frozen=True)
class VerifyOptions:
    """検証時のみ使用するオプション

    Attributes:
        certs: 検証時に証明書情報も出力するか
    """

    certs: bool = False


Variant = SignOptions | VerifyOptions


@dataclass(frozen=True)
class JarSignerRequest:
    """jarsigner呼び出し要求

    archive以外のフィールドはすべて任意で、Noneまたは空文字列の場合は
    対応するオプションを出力しません。

    Attributes:
        archive: 対象JARファイルのパス
        working_directory: コマンド実行時の作業ディレクトリ
        alias: キーストア内のエイリアス
        keystore: キーストアのパスまたはURL
        storepass: キーストアのパスワード（ログには出力されない）
        storetype: キーストアの種類
        provider_name: 暗号サービスプロバイダ名
        provider_class: 暗号サービスプロバイダのクラス名
        provider_arg: プロバイダへの引数
        verbose: jarsignerに-verboseを渡すか
        protected_authentication_path: 保護された認証パスを使用するか
        max_memory: JVMの最大ヒープサイズ（例: 512m）
        arguments: そのまま末尾に追加する任意の引数
        variant: 署名または検証のオプション
    """

    archive: Path
    working_directory: Path | None = None
    alias: str | None = None
    keystore: str | None = None
    storepass: str | None = None
    storetype: str | None = None
    provider_name: str | None = None
    provider_class: str | None = None
    provider_arg: str | None = None
    verbose: bool = False
    protected_authentication_path: bool = False
    max_memory: str | None = None
    arguments: tuple[str, ...] = ()
    variant: Variant | None = None

    @property
    def is_sign(self) -> bool:
        """署名要求かどうか"""
        return isinstance(self.variant, SignOptions)

    @property
    def is_verify(self) -> bool:
        """検証要求かどうか"""
        return isinstance(self.variant, VerifyOptions)


def sign_request(
    archive: Path, options: SignOptions | None = None, **common: Any
) -> JarSignerRequest:
    """署名要求を作成する

    Args:
        archive: 署名対象JARファイルのパス
        options: 署名オプション（省略時はすべて未指定）
        **common: JarSignerRequestの共通フィールド

    Returns:
        署名オプションを持つJarSignerRequest
    """
    return JarSignerRequest(archive=archive, variant=options or SignOptions(), **common)


def verify_request(archive: Path, certs: bool = False, **common: Any) -> JarSignerRequest:
    """検証要求を作成する

    Args:
        archive: 検証対象JARファイルのパス
        certs: 証明書情報も出力するか
        **common: JarSignerRequestの共通フィールド

    Returns:
        検証オプションを持つJarSignerRequest
    """
    return JarSignerRequest(archive=archive, variant=VerifyOptions(certs=certs), **common)
