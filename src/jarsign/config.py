"""Configuration module for jarsign."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


class ConfigError(Exception):
    """設定ファイル読み込みエラー"""

    pass


@dataclass(frozen=True)
class KeystoreSettings:
    """キーストア設定"""

    path: str | None = None
    type: str | None = None
    alias: str | None = None


@dataclass(frozen=True)
class ProviderSettings:
    """暗号サービスプロバイダ設定"""

    name: str | None = None
    class_name: str | None = None
    arg: str | None = None


@dataclass(frozen=True)
class TsaSettings:
    """タイムスタンプ局設定"""

    url: str | None = None
    cert: str | None = None
    policy_id: str | None = None
    digest_alg: str | None = None


@dataclass(frozen=True)
class JarSignConfig:
    """ルート設定

    パスワードは設定ファイルには保持しない。
    """

    jarsigner: Path | None = None
    keystore: KeystoreSettings = field(default_factory=KeystoreSettings)
    provider: ProviderSettings = field(default_factory=ProviderSettings)
    tsa: TsaSettings = field(default_factory=TsaSettings)
    sigfile: str | None = None
    certchain: Path | None = None
    max_memory: str | None = None
    protected: bool = False
    arguments: list[str] = field(default_factory=list)
    timeout: int | None = None


def load_config(path: Path) -> JarSignConfig:
    """設定ファイルを読み込む

    Args:
        path: 設定ファイルパス

    Returns:
        JarSignConfig: 読み込んだ設定（デフォルトとマージ済み）

    Raises:
        ConfigError: ファイル読み込みまたはパースエラー
    """
    if not path.exists():
        raise ConfigError(f"設定ファイルが見つかりません: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML解析エラー: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("設定ファイルはYAMLのマッピング形式である必要があります")

    for secret_key in ("storepass", "keypass"):
        if secret_key in data:
            raise ConfigError(f"パスワードは設定ファイルに記述できません: {secret_key}")

    default = get_default_config()

    return JarSignConfig(
        jarsigner=_optional_path(data.get("jarsigner"), default.jarsigner),
        keystore=_merge_keystore_settings(data.get("keystore", {}), default.keystore),
        provider=_merge_provider_settings(data.get("provider", {}), default.provider),
        tsa=_merge_tsa_settings(data.get("tsa", {}), default.tsa),
        sigfile=_optional_str(data.get("sigfile"), default.sigfile),
        certchain=_optional_path(data.get("certchain"), default.certchain),
        max_memory=_optional_str(data.get("max_memory"), default.max_memory),
        protected=_parse_bool("protected", data.get("protected"), default.protected),
        arguments=_parse_arguments(data.get("arguments"), default.arguments),
        timeout=_parse_timeout(data.get("timeout", default.timeout)),
    )


def get_default_config() -> JarSignConfig:
    """デフォルト設定を取得する"""
    return JarSignConfig()


def _optional_str(value: Any, default: str | None) -> str | None:
    if value is None:
        return default
    return str(value)


def _optional_path(value: Any, default: Path | None) -> Path | None:
    if value is None:
        return default
    return Path(str(value))


def _merge_keystore_settings(data: Any, default: KeystoreSettings) -> KeystoreSettings:
    """キーストア設定をマージする

    文字列のみが指定された場合はキーストアのパスとして扱う。
    """
    if isinstance(data, str):
        return KeystoreSettings(path=data, type=default.type, alias=default.alias)
    if not isinstance(data, dict):
        return default
    return KeystoreSettings(
        path=_optional_str(data.get("path"), default.path),
        type=_optional_str(data.get("type"), default.type),
        alias=_optional_str(data.get("alias"), default.alias),
    )


def _merge_provider_settings(data: Any, default: ProviderSettings) -> ProviderSettings:
    """プロバイダ設定をマージする"""
    if not isinstance(data, dict):
        return default
    return ProviderSettings(
        name=_optional_str(data.get("name"), default.name),
        class_name=_optional_str(data.get("class"), default.class_name),
        arg=_optional_str(data.get("arg"), default.arg),
    )


def _merge_tsa_settings(data: Any, default: TsaSettings) -> TsaSettings:
    """TSA設定をマージする"""
    if not isinstance(data, dict):
        return default
    return TsaSettings(
        url=_optional_str(data.get("url"), default.url),
        cert=_optional_str(data.get("cert"), default.cert),
        policy_id=_optional_str(data.get("policy_id"), default.policy_id),
        digest_alg=_optional_str(data.get("digest_alg"), default.digest_alg),
    )


def _parse_bool(key: str, data: Any, default: bool) -> bool:
    """真偽値をパースする（"false"などの文字列は受け付けない）"""
    if data is None:
        return default
    if not isinstance(data, bool):
        raise ConfigError(f"{key} は true または false である必要があります: {data!r}")
    return data


def _parse_arguments(data: Any, default: list[str]) -> list[str]:
    """任意引数をパースする"""
    if data is None:
        return list(default)
    if isinstance(data, str):
        return [data]
    if not isinstance(data, list):
        raise ConfigError("arguments はリストである必要があります")
    return [str(item) for item in data]


def _parse_timeout(data: Any) -> int | None:
    """タイムアウト秒数をパースする"""
    if data is None:
        return None
    if isinstance(data, bool) or not isinstance(data, int) or data <= 0:
        raise ConfigError(f"timeout は正の整数である必要があります: {data}")
    return data
