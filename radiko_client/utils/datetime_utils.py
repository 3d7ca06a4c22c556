"""
日時処理ユーティリティ

radikoの時刻文字列（YYYYMMDDHHmmss）の解析と表示用フォーマット
"""

from datetime import date, datetime, timedelta
from typing import List, Optional

import pytz

from radiko_client.error_handler import ParseError

JST = pytz.timezone('Asia/Tokyo')

RADIKO_DATETIME_FORMAT = '%Y%m%d%H%M%S'
RADIKO_DATETIME_LENGTH = 14


def parse_radiko_datetime(value: str) -> datetime:
    """YYYYMMDDHHmmss形式の文字列をJSTのdatetimeに変換

    Args:
        value: radiko APIの時刻文字列（例: "20250701050000"）

    Returns:
        datetime: タイムゾーン付き（Asia/Tokyo）

    Raises:
        ParseError: 長さが14桁でない・数字以外を含む・日時として不正
    """
    if not isinstance(value, str) or len(value) != RADIKO_DATETIME_LENGTH or not value.isdigit():
        raise ParseError(f"時刻の形式が不正です（14桁の数字が必要）: {value!r}")

    try:
        naive = datetime.strptime(value, RADIKO_DATETIME_FORMAT)
    except ValueError as e:
        raise ParseError(f"時刻の解析に失敗しました: {value!r} ({e})")

    return JST.localize(naive)


def format_time(value: str) -> str:
    """YYYYMMDDHHmmss形式の文字列からHH:MMを返す（長さ不正時は空文字）"""
    if not value or len(value) != RADIKO_DATETIME_LENGTH:
        return ""
    return f"{value[8:10]}:{value[10:12]}"


def format_date(day: date) -> str:
    """日付をYYYYMMDD形式に変換"""
    return day.strftime('%Y%m%d')


def today_jst(now: Optional[datetime] = None) -> date:
    """日本時間での今日の日付"""
    if now is None:
        now = datetime.now(JST)
    elif now.tzinfo is None:
        now = JST.localize(now)
    return now.astimezone(JST).date()


def past_seven_days(today: Optional[date] = None) -> List[date]:
    """今日を含む過去7日間の日付（古い順）

    タイムフリーで聴取可能な範囲の日付選択に使用する。
    """
    if today is None:
        today = today_jst()
    return [today - timedelta(days=offset) for offset in range(6, -1, -1)]
