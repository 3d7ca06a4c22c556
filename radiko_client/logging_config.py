"""
ログ設定モジュール

radiko_client全体のログ設定を統一管理します。
- 通常使用時：コンソール出力なし、ファイル出力のみ
- テスト時：コンソール出力あり（ERROR以上）
- 最終更新から7日を超えたログファイルは起動時に削除
"""

import logging
import os
import sys
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union


class RadikoLogConfig:
    """radiko_clientのログ設定管理クラス"""

    DEFAULT_LOG_LEVEL = logging.INFO
    DEFAULT_LOG_FILE = "radiko-client.log"
    DEFAULT_MAX_LOG_SIZE = 10 * 1024 * 1024  # 10MB
    LOG_RETENTION_DAYS = 7

    def __init__(self):
        self._initialized = False
        self._log_file: Optional[Path] = None
        self._is_test_mode = self._detect_test_mode()
        self._console_output = self._determine_console_output()

    def _detect_test_mode(self) -> bool:
        """テストモードかどうかを判定"""
        return any([
            'PYTEST_CURRENT_TEST' in os.environ,
            'pytest' in sys.modules,
            os.environ.get('RADIKO_CLIENT_TEST_MODE', '').lower() == 'true'
        ])

    def _determine_console_output(self) -> bool:
        """コンソール出力を行うかどうかを判定"""
        console_env = os.environ.get('RADIKO_CLIENT_CONSOLE_OUTPUT', '').lower()
        if console_env == 'true':
            return True
        elif console_env == 'false':
            return False

        return self._is_test_mode

    def purge_stale_log(self, log_file: Union[str, Path],
                        retention_days: Optional[int] = None) -> bool:
        """最終更新日時が保持期間より古いログファイルを削除

        Returns:
            削除した場合True
        """
        if retention_days is None:
            retention_days = self.LOG_RETENTION_DAYS

        path = Path(log_file)
        try:
            age_seconds = time.time() - path.stat().st_mtime
        except OSError:
            return False

        if age_seconds <= retention_days * 24 * 3600:
            return False

        try:
            path.unlink()
        except OSError as e:
            print(f"Warning: Failed to remove stale log file: {e}", file=sys.stderr)
            return False
        return True

    def setup_logging(self,
                      log_level: Optional[Union[str, int]] = None,
                      log_file: Optional[str] = None,
                      console_output: Optional[bool] = None) -> None:
        """
        ログ設定を初期化

        Args:
            log_level: ログレベル（DEBUG, INFO, WARNING, ERROR, CRITICAL）
            log_file: ログファイルパス
            console_output: コンソール出力の有無（None時は自動判定）
        """
        if self._initialized:
            return

        if log_level is None:
            log_level = os.environ.get('RADIKO_CLIENT_LOG_LEVEL', self.DEFAULT_LOG_LEVEL)

        if isinstance(log_level, str):
            log_level = getattr(logging, log_level.upper(), self.DEFAULT_LOG_LEVEL)

        if log_file is None:
            log_file = os.environ.get('RADIKO_CLIENT_LOG_FILE', self.DEFAULT_LOG_FILE)

        if console_output is None:
            console_output = self._console_output

        handlers = []

        # ファイルハンドラー（テスト時以外で有効）
        if log_file and not self._is_test_mode:
            try:
                log_path = Path(log_file).expanduser()
                log_path.parent.mkdir(parents=True, exist_ok=True)

                if self.purge_stale_log(log_path):
                    print(f"古いログファイルを削除しました: {log_path}", file=sys.stderr)

                file_handler = RotatingFileHandler(
                    log_path,
                    maxBytes=self.DEFAULT_MAX_LOG_SIZE,
                    backupCount=5,
                    encoding='utf-8'
                )
                file_handler.setLevel(log_level)
                handlers.append(file_handler)
                self._log_file = log_path

            except OSError as e:
                print(f"Warning: Failed to create log file handler: {e}", file=sys.stderr)

        if console_output:
            console_handler = logging.StreamHandler(sys.stdout)
            if self._is_test_mode:
                console_handler.setLevel(logging.ERROR)
            else:
                console_handler.setLevel(log_level)
            handlers.append(console_handler)

        logging.basicConfig(
            level=log_level,
            handlers=handlers or [logging.NullHandler()],
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
            force=True
        )

        self._initialized = True

    def get_logger(self, name: str) -> logging.Logger:
        """設定済みのロガーを取得"""
        if not self._initialized:
            self.setup_logging()

        return logging.getLogger(name)

    def get_log_file_path(self) -> Path:
        """現在（または既定）のログファイルパスを返す"""
        if self._log_file is not None:
            return self._log_file
        return Path(os.environ.get('RADIKO_CLIENT_LOG_FILE', self.DEFAULT_LOG_FILE)).expanduser()

    def is_test_mode(self) -> bool:
        return self._is_test_mode

    def reset(self) -> None:
        """ログ設定をリセット（テスト用）"""
        self._initialized = False
        self._log_file = None
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()


# グローバルインスタンス
_log_config = RadikoLogConfig()


def setup_logging(log_level: Optional[Union[str, int]] = None,
                  log_file: Optional[str] = None,
                  console_output: Optional[bool] = None) -> None:
    """radiko_clientのログ設定を初期化"""
    _log_config.setup_logging(log_level, log_file, console_output)


def get_logger(name: str) -> logging.Logger:
    """ロガーを取得"""
    return _log_config.get_logger(name)


def get_log_file_path() -> Path:
    """ログファイルパスを取得（logsコマンド用）"""
    return _log_config.get_log_file_path()


def reset_logging() -> None:
    """ログ設定をリセット（テスト用）"""
    _log_config.reset()
