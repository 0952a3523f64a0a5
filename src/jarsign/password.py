"""パスワード取得

キーストアおよび秘密鍵のパスワードを環境変数または対話的入力から取得します。
パスワードは設定ファイルやコマンドラインオプションからは受け付けません。
"""

from __future__ import annotations

import os
from typing import Protocol

STOREPASS_ENV = "JARSIGN_STOREPASS"
KEYPASS_ENV = "JARSIGN_KEYPASS"


class PasswordError(Exception):
    """パスワード取得に関する基本例外クラス

    対話的入力の失敗、キャンセル、空入力などを表します。
    """

    pass


class PasswordProvider(Protocol):
    """パスワードを取得するためのインターフェース"""

    def get_password(self, prompt: str = "Enter keystore password: ") -> str:
        """対話的にパスワードを取得する

        Raises:
            PasswordError: パスワードの取得に失敗した場合
        """
        ...

    def get_password_from_env(self, env_var: str = STOREPASS_ENV) -> str | None:
        """環境変数からパスワードを取得する（未設定の場合はNone）"""
        ...


class DefaultPasswordProvider:
    """パスワードを取得するデフォルト実装

    対話的入力（getpass）と環境変数からのパスワード取得をサポートします。
    """

    def get_password(self, prompt: str = "Enter keystore password: ") -> str:
        """対話的にパスワードを取得する

        入力されたパスワードは画面に表示されません。

        Args:
            prompt: パスワード入力を求める際に表示するプロンプト文字列

        Returns:
            入力されたパスワード文字列

        Raises:
            PasswordError: パスワードが空、または入力がキャンセルされた場合
        """
        import getpass

        try:
            password = getpass.getpass(prompt)
        except KeyboardInterrupt as e:
            raise PasswordError("Password input cancelled by user interrupt") from e
        except EOFError as e:
            raise PasswordError("Password input failed: EOF received") from e

        if not password:
            raise PasswordError("Password cannot be empty")

        return password

    def get_password_from_env(self, env_var: str = STOREPASS_ENV) -> str | None:
        """環境変数からパスワードを取得する

        Args:
            env_var: パスワードが格納されている環境変数名

        Returns:
            環境変数に設定されたパスワード。未設定または空の場合はNone。
        """
        password = os.environ.get(env_var)
        if not password:
            return None
        return password

    def resolve(self, env_var: str, prompt: str, interactive: bool) -> str | None:
        """環境変数を優先してパスワードを解決する

        環境変数が未設定でinteractiveがTrueの場合のみ対話的に入力を求めます。

        Args:
            env_var: 参照する環境変数名
            prompt: 対話的入力時のプロンプト
            interactive: 対話的入力を許可するか

        Returns:
            パスワード。取得できなかった場合はNone。

        Raises:
            PasswordError: 対話的入力に失敗した場合
        """
        password = self.get_password_from_env(env_var)
        if password is None and interactive:
            password = self.get_password(prompt)
        return password
