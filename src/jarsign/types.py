"""共通型定義"""

from enum import IntEnum


class ExitCode(IntEnum):
    """CLIの終了コード"""

    SUCCESS = 0
    ERROR = 1
    INVALID_INPUT = 2
    DEPENDENCY_ERROR = 3
    VERIFY_FAILED = 4
