"""
radiko認証モジュール

このモジュールはradikoサービスへの認証を管理します。
- auth1: 識別ヘッダー送信、認証トークンとキー位置の取得
- 部分キーの生成
- auth2: 部分キー送信、エリアコードの取得

認証結果は不変のAuthContextとして返し、後続の呼び出しへ明示的に渡します。
"""

import base64
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

import requests

from .error_handler import AuthError
from .utils.base import LoggerMixin
from .utils.network_utils import create_radiko_session


@dataclass(frozen=True)
class AuthContext:
    """認証結果（認証トークンとエリアコード）"""
    token: str
    area_code: str


@dataclass(frozen=True)
class HandshakeChallenge:
    """auth1レスポンスヘッダーから検証済みで取り出した値"""
    token: str
    key_offset: int
    key_length: int

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> 'HandshakeChallenge':
        """必須ヘッダーを検証してHandshakeChallengeを生成

        Raises:
            AuthError: 必須ヘッダーの欠落、またはオフセット・長さが整数でない
        """
        token = headers.get('X-Radiko-AuthToken')
        key_offset = headers.get('X-Radiko-KeyOffset')
        key_length = headers.get('X-Radiko-KeyLength')

        if not token:
            raise AuthError("レスポンスに認証トークンが見つかりませんでした")
        if not key_offset or not key_length:
            raise AuthError("レスポンスにキーのオフセットまたは長さが見つかりませんでした")

        try:
            offset = int(key_offset)
            length = int(key_length)
        except ValueError:
            raise AuthError(
                f"キーのオフセットまたは長さが不正です: offset={key_offset}, length={key_length}"
            )

        if offset < 0 or length <= 0:
            raise AuthError(f"キーのオフセットまたは長さが範囲外です: offset={offset}, length={length}")

        return cls(token=token, key_offset=offset, key_length=length)


class RadikoAuthenticator(LoggerMixin):
    """radiko認証を管理するクラス"""

    # radiko API エンドポイント
    AUTH1_URL = "https://radiko.jp/v2/api/auth1"
    AUTH2_URL = "https://radiko.jp/v2/api/auth2"

    # radiko認証キー（固定値）
    AUTH_KEY = "bcd151073c03b352e1ef2fd66c32209da9ca0afa"

    # クライアント識別ヘッダー（プロトコル上の固定値）
    IDENTIFICATION_HEADERS = {
        'X-Radiko-App': 'pc_html5',
        'X-Radiko-App-Version': '0.0.1',
        'X-Radiko-User': 'dummy_user',
        'X-Radiko-Device': 'pc',
    }

    def __init__(self, session: Optional[requests.Session] = None):
        super().__init__()
        self.session = session or create_radiko_session()

        # 単一セッション利用者向けに直近の認証結果を保持する
        self.last_context: Optional[AuthContext] = None

    @classmethod
    def generate_partial_key(cls, offset: int, length: int) -> str:
        """部分キーを生成（AUTH_KEY[offset:offset+length]のBase64）"""
        partial_key = cls.AUTH_KEY.encode('utf-8')[offset:offset + length]
        return base64.b64encode(partial_key).decode('ascii')

    def authenticate(self) -> AuthContext:
        """2段階ハンドシェイクを実行して認証結果を返す

        Returns:
            AuthContext: 認証トークンとエリアコード

        Raises:
            AuthError: 非成功ステータス・通信失敗・必須ヘッダー欠落・エリアコード欠落
        """
        self.logger.info("radiko認証を開始")

        challenge = self._request_challenge()
        partial_key = self.generate_partial_key(challenge.key_offset, challenge.key_length)
        area_code = self._confirm_challenge(challenge.token, partial_key)

        context = AuthContext(token=challenge.token, area_code=area_code)
        self.last_context = context

        self.logger.info(f"認証完了: area_code={area_code}")
        return context

    def _request_challenge(self) -> HandshakeChallenge:
        """auth1: 認証トークンとキー位置を取得"""
        try:
            response = self.session.get(self.AUTH1_URL, headers=self.IDENTIFICATION_HEADERS)
        except requests.RequestException as e:
            self.logger.error(f"auth1リクエストエラー: {e}")
            raise AuthError(f"radikoの認証(auth1)リクエストに失敗しました: {e}")

        if not response.ok:
            self.logger.error(f"auth1失敗: HTTP {response.status_code}")
            raise AuthError(
                "radikoの認証(auth1)に失敗しました",
                context={'status_code': response.status_code}
            )

        challenge = HandshakeChallenge.from_headers(response.headers)
        self.logger.debug(
            f"認証トークンとキー情報取得成功: offset={challenge.key_offset}, length={challenge.key_length}"
        )
        return challenge

    def _confirm_challenge(self, token: str, partial_key: str) -> str:
        """auth2: 部分キーを送信してエリアコードを取得"""
        headers = dict(self.IDENTIFICATION_HEADERS)
        headers['X-Radiko-AuthToken'] = token
        headers['X-Radiko-PartialKey'] = partial_key

        try:
            response = self.session.get(self.AUTH2_URL, headers=headers)
        except requests.RequestException as e:
            self.logger.error(f"auth2リクエストエラー: {e}")
            raise AuthError(f"radikoの認証(auth2)リクエストに失敗しました: {e}")

        if not response.ok:
            self.logger.error(f"auth2失敗: HTTP {response.status_code}")
            raise AuthError(
                "radikoの認証(auth2)に失敗しました",
                context={'status_code': response.status_code}
            )

        # レスポンス形式: "JP13,tokyo Japan"
        area_code = response.text.split(',')[0].strip()
        if not area_code:
            raise AuthError("auth2レスポンスにエリアコードが含まれていません")

        return area_code

    @staticmethod
    def dump_response_headers(response: requests.Response,
                              filename: Union[str, Path] = "response_headers.json") -> Path:
        """レスポンスヘッダーをJSONファイルに保存（デバッグ用）"""
        path = Path(filename)
        header_object = {key: value for key, value in response.headers.items()}
        path.write_text(json.dumps(header_object, ensure_ascii=False, indent=2), encoding='utf-8')
        return path
