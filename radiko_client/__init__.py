"""
radiko_client - radiko APIクライアント

このパッケージはradikoの認証・番組情報取得・タイムフリー録音を提供します。

主要コンポーネント:
- auth: radiko認証（2段階ハンドシェイク）
- program_info: 放送局・番組表の取得とキャッシュ
- timefree_recorder: タイムフリー録音
- metadata_tagger: カバー画像・メタデータ埋め込み
- error_handler: 統一例外
- cli: コマンドライン操作
"""

__version__ = "1.0.0"
__license__ = "MIT"

from .auth import RadikoAuthenticator, AuthContext
from .program_info import (
    ProgramInfoManager, ProgramCache, Station, Program,
    parse_station_list_xml, parse_program_xml
)
from .ffmpeg_runner import FFmpegRunner
from .metadata_tagger import MetadataTagger, TaggingResult
from .timefree_recorder import TimeFreeRecorder, RecordingJob, RecordingState
from .client import RadikoClient
from .error_handler import (
    RadikoClientError, AuthError, NetworkError, ParseError, ConfigError,
    ToolUnavailableError, RecordingError, ErrorSeverity, ErrorCategory
)

__all__ = [
    # 認証関連
    'RadikoAuthenticator',
    'AuthContext',

    # 番組情報関連
    'ProgramInfoManager',
    'ProgramCache',
    'Station',
    'Program',
    'parse_station_list_xml',
    'parse_program_xml',

    # 録音関連
    'FFmpegRunner',
    'MetadataTagger',
    'TaggingResult',
    'TimeFreeRecorder',
    'RecordingJob',
    'RecordingState',
    'RadikoClient',

    # エラーハンドリング関連
    'RadikoClientError',
    'AuthError',
    'NetworkError',
    'ParseError',
    'ConfigError',
    'ToolUnavailableError',
    'RecordingError',
    'ErrorSeverity',
    'ErrorCategory',
]
