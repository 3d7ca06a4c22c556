"""
単一セッション向けクライアント

認証・番組情報取得・録音をまとめ、直近の認証結果を保持して
後続の呼び出しへ渡します。認証中に他の呼び出しが古い認証結果を
前提に動いている場合の同期は行わないため、呼び出し側で避けてください。
"""

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from .auth import AuthContext, RadikoAuthenticator
from .program_info import Program, ProgramInfoManager, Station
from .timefree_recorder import RecordingJob, TimeFreeRecorder
from .utils.base import LoggerMixin
from .utils.config_utils import Preferences


class RadikoClient(LoggerMixin):
    """radiko APIクライアント（単一セッション用）"""

    def __init__(self, preferences: Preferences,
                 authenticator: Optional[RadikoAuthenticator] = None,
                 program_manager: Optional[ProgramInfoManager] = None,
                 recorder: Optional[TimeFreeRecorder] = None):
        super().__init__()
        self.preferences = preferences
        self.authenticator = authenticator or RadikoAuthenticator()
        self.program_manager = program_manager or ProgramInfoManager(
            preferences.cache_dir, session=self.authenticator.session
        )
        self.recorder = recorder or TimeFreeRecorder(ffmpeg_path=preferences.ffmpeg_path)
        self.auth_context: Optional[AuthContext] = None

    def authenticate(self) -> AuthContext:
        """認証して結果を各コンポーネントに保持させる"""
        context = self.authenticator.authenticate()
        self.auth_context = context
        self.program_manager.auth_context = context
        self.recorder.auth_context = context
        return context

    def ensure_authenticated(self) -> AuthContext:
        if self.auth_context is None:
            return self.authenticate()
        return self.auth_context

    def get_stations(self, area_code: Optional[str] = None) -> List[Station]:
        return self.program_manager.get_stations(area_code or self.preferences.area_code)

    def get_programs(self, station_id: str, date: str) -> List[Program]:
        return self.program_manager.get_programs(station_id, date)

    def get_programs_for_stations(self, station_ids: Iterable[str], date: str,
                                  show_progress: bool = False) -> Dict[str, List[Program]]:
        return self.program_manager.get_programs_for_stations(
            station_ids, date, show_progress=show_progress
        )

    async def record_program(self, program: Program,
                             output_directory: Optional[Union[str, Path]] = None) -> str:
        """番組を録音して最終出力パスを返す（保存先省略時は設定の保存先）"""
        directory = output_directory or self.preferences.save_directory
        job = RecordingJob.create(program, directory)
        return await self.recorder.record(job, self.auth_context)
