"""
エラーハンドリングモジュール

radiko_clientの統一例外クラスを提供します。
- 例外カテゴリ・重要度
- 認証・ネットワーク・解析・設定・外部ツール・録音の各エラー
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """エラー重要度"""
    LOW = "low"           # 軽微な警告
    MEDIUM = "medium"     # 注意が必要なエラー
    HIGH = "high"         # 重要なエラー
    CRITICAL = "critical" # 致命的なエラー


class ErrorCategory(Enum):
    """エラーカテゴリ"""
    AUTHENTICATION = "authentication"     # 認証関連
    NETWORK = "network"                   # ネットワーク関連
    PARSE = "parse"                       # XML・時刻解析関連
    CONFIGURATION = "configuration"       # 設定関連
    TOOL = "tool"                         # 外部ツール関連
    RECORDING = "recording"               # 録音関連
    UNKNOWN = "unknown"                   # 不明


class RadikoClientError(Exception):
    """radiko_client基底例外クラス"""
    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.UNKNOWN,
                 severity: ErrorSeverity = ErrorSeverity.MEDIUM,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context or {}


class AuthError(RadikoClientError):
    """認証エラー（ハンドシェイク失敗・トークン未取得）"""
    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCategory.AUTHENTICATION, ErrorSeverity.HIGH, context)


class NetworkError(RadikoClientError):
    """ネットワークエラー"""
    def __init__(self, message: str, status_code: Optional[int] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCategory.NETWORK, ErrorSeverity.MEDIUM, context)
        self.status_code = status_code


class ParseError(RadikoClientError):
    """XML・時刻文字列の解析エラー"""
    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCategory.PARSE, ErrorSeverity.MEDIUM, context)


class ConfigError(RadikoClientError):
    """設定エラー"""
    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCategory.CONFIGURATION, ErrorSeverity.HIGH, context)


class ToolUnavailableError(RadikoClientError):
    """外部ツール（ffmpeg）が起動できない"""
    def __init__(self, message: str, tool_path: str = "",
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCategory.TOOL, ErrorSeverity.CRITICAL, context)
        self.tool_path = tool_path


class RecordingError(RadikoClientError):
    """外部ツールが非ゼロ終了した"""
    def __init__(self, message: str, exit_code: Optional[int] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCategory.RECORDING, ErrorSeverity.HIGH, context)
        self.exit_code = exit_code
