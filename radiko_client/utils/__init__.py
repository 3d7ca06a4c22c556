"""
radiko_client ユーティリティモジュール

共通機能やヘルパー関数を提供するユーティリティパッケージ
"""

from typing import List
from .base import LoggerMixin
from .datetime_utils import parse_radiko_datetime, format_time, format_date, past_seven_days
from .path_utils import ensure_directory_path_exists, sanitize_filename, remove_file_quietly
from .network_utils import create_radiko_session

__all__: List[str] = [
    'LoggerMixin',
    'parse_radiko_datetime',
    'format_time',
    'format_date',
    'past_seven_days',
    'ensure_directory_path_exists',
    'sanitize_filename',
    'remove_file_quietly',
    'create_radiko_session'
]
