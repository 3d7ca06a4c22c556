"""
タイムフリー録音モジュール

このモジュールはradikoのタイムフリーAPIを使用した録音機能を提供します。
- 録音ジョブ（出力パス・一時ファイルパス）の生成
- タイムフリーM3U8 URLの生成
- ffmpegによるストリームコピー録音
- カバー画像・メタデータ埋め込みへの受け渡しと一時ファイルの後始末

録音ジョブの状態遷移:
    PENDING → RECORDING → DONE（カバー画像なし）
    PENDING → RECORDING → DOWNLOADING_COVER → TAGGING → DONE
    TAGGING → TAGGING_FAILED → DONE（未加工の録音ファイルを保存）
    録音完了前の失敗は FAILED で終了（リトライなし）
"""

import tempfile
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from .auth import AuthContext
from .error_handler import AuthError
from .ffmpeg_runner import FFmpegRunner
from .metadata_tagger import MetadataTagger, cover_image_extension
from .program_info import Program
from .utils.base import LoggerMixin
from .utils.datetime_utils import parse_radiko_datetime
from .utils.path_utils import ensure_directory_path_exists, remove_file_quietly, sanitize_filename


class RecordingState(Enum):
    """録音ジョブの状態"""
    PENDING = "pending"
    RECORDING = "recording"
    DOWNLOADING_COVER = "downloading_cover"
    TAGGING = "tagging"
    TAGGING_FAILED = "tagging_failed"
    DONE = "done"
    FAILED = "failed"


def build_output_filename(program: Program, extension: str = "m4a") -> str:
    """録音ファイル名生成

    Format:
        {STATION_ID}_{safe_title}_{YYYYMMDDHHmmss}.{extension}
    """
    safe_title = sanitize_filename(program.title)
    return f"{program.station_id}_{safe_title}_{program.start_time}.{extension}"


@dataclass
class RecordingJob:
    """1回の録音ジョブ（録音完了までの一時的な情報）"""
    program: Program
    output_directory: Path
    temp_audio_path: Path
    final_path: Path
    temp_image_path: Optional[Path] = None
    states: List[RecordingState] = field(default_factory=lambda: [RecordingState.PENDING])

    @classmethod
    def create(cls, program: Program, output_directory: Union[str, Path],
               extension: str = "m4a",
               temp_directory: Optional[Union[str, Path]] = None) -> 'RecordingJob':
        """番組情報から録音ジョブを生成

        一時ファイル名にはランダムな接尾辞を付け、並行ジョブ間で衝突しないようにする。
        """
        output_directory = Path(output_directory).expanduser()
        temp_dir = Path(temp_directory) if temp_directory else Path(tempfile.gettempdir())
        suffix = uuid.uuid4().hex

        temp_image_path = None
        if program.image_url:
            temp_image_path = temp_dir / f"radiko_cover_{suffix}.{cover_image_extension(program.image_url)}"

        return cls(
            program=program,
            output_directory=output_directory,
            temp_audio_path=temp_dir / f"radiko_temp_{suffix}.{extension}",
            final_path=output_directory / build_output_filename(program, extension),
            temp_image_path=temp_image_path,
        )

    @property
    def state(self) -> RecordingState:
        return self.states[-1]

    def transition(self, state: RecordingState) -> None:
        self.states.append(state)


class TimeFreeRecorder(LoggerMixin):
    """タイムフリー専用録音クラス"""

    # radiko タイムフリーAPI
    TIMEFREE_URL_API = "https://radiko.jp/v2/api/ts/playlist.m3u8"

    # 遡り時間パラメータ（値の意味はradiko側で定義）
    LOOKBACK_WINDOW = 15

    def __init__(self, ffmpeg_path: str = "ffmpeg",
                 auth_context: Optional[AuthContext] = None,
                 runner: Optional[FFmpegRunner] = None,
                 tagger: Optional[MetadataTagger] = None):
        super().__init__()
        self.runner = runner or FFmpegRunner(ffmpeg_path)
        self.tagger = tagger or MetadataTagger(runner=self.runner)
        self.auth_context = auth_context

    def generate_timefree_url(self, station_id: str, start_time: str, end_time: str) -> str:
        """タイムフリーM3U8 URL生成

        Raises:
            ParseError: 開始・終了時刻が14桁の時刻文字列でない
        """
        parse_radiko_datetime(start_time)
        parse_radiko_datetime(end_time)

        return (f"{self.TIMEFREE_URL_API}?station_id={station_id}"
                f"&l={self.LOOKBACK_WINDOW}&ft={start_time}&to={end_time}")

    def build_recording_args(self, token: str, url: str, output_path: Union[str, Path]) -> List[str]:
        """録音用のffmpeg引数を生成（再エンコードなし）"""
        return [
            "-y",
            "-fflags", "+discardcorrupt",
            "-headers", f"X-Radiko-Authtoken: {token}\r\n",
            "-i", url,
            "-bsf:a", "aac_adtstoasc",
            "-acodec", "copy",
            str(output_path),
        ]

    def _resolve_token(self, auth: Optional[AuthContext]) -> str:
        context = auth or self.auth_context
        if context is None or not context.token:
            raise AuthError("録音を開始できません。認証トークンが見つかりません。先に認証を行ってください。")
        return context.token

    async def record(self, job: RecordingJob, auth: Optional[AuthContext] = None) -> str:
        """録音ジョブを実行

        Args:
            job: 録音ジョブ
            auth: 認証結果（省略時は保持中の認証結果）

        Returns:
            str: 最終出力パス

        Raises:
            AuthError: 認証トークンがない
            ParseError: 番組の開始・終了時刻が不正
            ToolUnavailableError: ffmpegを起動できない
            RecordingError: ffmpegが非ゼロで終了した
        """
        program = job.program
        try:
            token = self._resolve_token(auth)
            url = self.generate_timefree_url(program.station_id, program.start_time, program.end_time)
            ensure_directory_path_exists(job.output_directory)
        except Exception:
            job.transition(RecordingState.FAILED)
            raise

        self.logger.info(f"タイムフリー録音開始: {program.title} ({program.station_id})")

        # カバー画像がない場合は最終パスへ直接録音
        if not program.image_url:
            job.transition(RecordingState.RECORDING)
            try:
                await self.runner.run(self.build_recording_args(token, url, job.final_path))
            except Exception:
                job.transition(RecordingState.FAILED)
                raise
            job.transition(RecordingState.DONE)
            self.logger.info(f"録音が完了しました: {job.final_path}")
            return str(job.final_path)

        # カバー画像がある場合は一時ファイルへ録音してからメタデータを埋め込む
        try:
            job.transition(RecordingState.RECORDING)
            await self.runner.run(self.build_recording_args(token, url, job.temp_audio_path))

            job.transition(RecordingState.DOWNLOADING_COVER)
            result = await self.tagger.tag(
                job.temp_audio_path,
                job.final_path,
                title=program.title,
                artist=program.performers,
                album=program.station_name,
                cover_image_path=job.temp_image_path,
                cover_image_url=program.image_url,
            )
            job.transition(RecordingState.TAGGING)
            if not result.tagged:
                job.transition(RecordingState.TAGGING_FAILED)
            job.transition(RecordingState.DONE)

            self.logger.info(f"録音が完了しました: {result.output_path}")
            return str(result.output_path)
        except Exception:
            job.transition(RecordingState.FAILED)
            raise
        finally:
            remove_file_quietly(job.temp_audio_path)
            remove_file_quietly(job.temp_image_path)

    async def record_program(self, program: Program, output_directory: Union[str, Path],
                             auth: Optional[AuthContext] = None) -> str:
        """番組情報を指定してタイムフリー録音実行"""
        job = RecordingJob.create(program, output_directory)
        return await self.record(job, auth)
