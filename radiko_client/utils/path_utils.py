"""
パス処理ユーティリティ

ディレクトリ作成・ファイル名の安全化・一時ファイル削除の統一機能
"""

import re
from pathlib import Path
from typing import Union

from radiko_client.logging_config import get_logger

logger = get_logger(__name__)

# ファイル名に使用できない文字
_ILLEGAL_FILENAME_CHARS = re.compile(r'[/\\:*?"<>|]')


def ensure_directory_path_exists(dir_path: Union[str, Path]) -> Path:
    """ディレクトリパスを作成し、Pathオブジェクトを返す

    指定されたディレクトリパスが存在しない場合は自動的に作成する。
    既存のディレクトリがある場合はエラーにならない。

    Args:
        dir_path: ディレクトリパス（文字列またはPathオブジェクト）

    Returns:
        Path: ディレクトリパスのPathオブジェクト
    """
    path = Path(dir_path).expanduser()
    path.mkdir(parents=True, exist_ok=True)
    return path


def sanitize_filename(name: str) -> str:
    """ファイル名に使用できない文字をアンダースコアに置換

    Example:
        sanitize_filename('A/B: C?')  # 'A_B_ C_'
    """
    return _ILLEGAL_FILENAME_CHARS.sub('_', name)


def remove_file_quietly(path: Union[str, Path, None]) -> bool:
    """ファイルを削除する（存在しない・削除失敗はログのみ）

    Returns:
        実際に削除した場合True
    """
    if path is None:
        return False

    target = Path(path)
    try:
        target.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning(f"一時ファイルの削除に失敗しました: {target} - {e}")
        return False

    logger.debug(f"一時ファイルを削除しました: {target}")
    return True
