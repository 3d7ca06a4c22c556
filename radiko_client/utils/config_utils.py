"""
設定ファイル管理ユーティリティ

JSON設定ファイル（保存先・ffmpegパス・キャッシュディレクトリ等）の
読み込みを統一提供します。
"""

import json
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from radiko_client.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "save_directory": "~/Downloads",
    "ffmpeg_path": "ffmpeg",
    "cache_dir": str(Path(tempfile.gettempdir()) / "radiko-cache"),
    "area_code": None,
    "log_level": "INFO",
    "log_file": "radiko-client.log",
}


@dataclass(frozen=True)
class Preferences:
    """利用者設定"""
    save_directory: Path
    ffmpeg_path: str
    cache_dir: Path
    area_code: Optional[str] = None
    log_level: str = "INFO"
    log_file: str = "radiko-client.log"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Preferences':
        merged = DEFAULT_CONFIG.copy()
        merged.update(data)

        def value(key: str) -> Any:
            # null・空文字はデフォルト値扱い
            return merged.get(key) or DEFAULT_CONFIG[key]

        return cls(
            save_directory=Path(value("save_directory")).expanduser(),
            ffmpeg_path=value("ffmpeg_path"),
            cache_dir=Path(value("cache_dir")).expanduser(),
            area_code=merged.get("area_code") or None,
            log_level=str(value("log_level")),
            log_file=str(value("log_file")),
        )


class ConfigManager:
    """統一設定管理クラス

    Usage:
        config_manager = ConfigManager("config.json")
        config = config_manager.load_config(DEFAULT_CONFIG)
    """

    def __init__(self, config_path: Union[str, Path], encoding: str = 'utf-8'):
        self.config_path = Path(config_path).expanduser()
        self.encoding = encoding

    def load_config(self, default_config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """設定ファイルを読み込み、デフォルト設定とマージして返す

        ファイルが存在しない・JSONが不正な場合はデフォルト設定を返す。
        """
        if default_config is None:
            default_config = {}

        if not self.config_path.exists():
            logger.info(f"設定ファイルが存在しません。デフォルト設定を使用します: {self.config_path}")
            return default_config.copy()

        try:
            with open(self.config_path, 'r', encoding=self.encoding) as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"設定ファイルJSON解析エラー: {self.config_path} - {e}")
            return default_config.copy()
        except OSError as e:
            logger.error(f"設定ファイル読み込みエラー: {self.config_path} - {e}")
            return default_config.copy()

        if not isinstance(config, dict):
            logger.error(f"設定ファイルの形式が不正です（オブジェクトが必要）: {self.config_path}")
            return default_config.copy()

        merged_config = default_config.copy()
        merged_config.update(config)

        logger.debug(f"設定ファイル読み込み成功: {self.config_path}")
        return merged_config


def load_preferences(config_path: Union[str, Path] = "config.json") -> Preferences:
    """設定ファイルから利用者設定を読み込む"""
    config = ConfigManager(config_path).load_config(DEFAULT_CONFIG)
    return Preferences.from_dict(config)
