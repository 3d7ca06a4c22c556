"""
ネットワーク処理ユーティリティ

radiko API用のHTTPセッション作成を統一します。
"""

from typing import Dict, Optional

import requests

# radiko APIが受け付けるクライアント識別ヘッダー
RADIKO_STANDARD_HEADERS = {
    'User-Agent': 'curl/7.56.1',
    'Accept': '*/*',
}

DEFAULT_TIMEOUT = 30


class RadikoSession(requests.Session):
    """既定タイムアウト付きのrequests.Session"""

    def __init__(self, timeout: int = DEFAULT_TIMEOUT):
        super().__init__()
        self.timeout = timeout

    def request(self, method, url, **kwargs):
        kwargs.setdefault('timeout', self.timeout)
        return super().request(method, url, **kwargs)


def create_radiko_session(
    timeout: int = DEFAULT_TIMEOUT,
    additional_headers: Optional[Dict[str, str]] = None
) -> requests.Session:
    """radiko API用の標準セッションを作成

    Args:
        timeout: リクエストタイムアウト秒数（デフォルト: 30秒）
        additional_headers: 追加ヘッダー辞書

    Returns:
        requests.Session: 設定済みセッション

    Example:
        session = create_radiko_session()
        response = session.get("https://radiko.jp/v2/api/auth1")
    """
    session = RadikoSession(timeout=timeout)

    headers = dict(RADIKO_STANDARD_HEADERS)
    if additional_headers:
        headers.update(additional_headers)

    session.headers.update(headers)
    return session
