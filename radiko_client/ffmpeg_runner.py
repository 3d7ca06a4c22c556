"""
外部メディアツール（ffmpeg）実行モジュール

ffmpegを独立したプロセスとして起動し、終了を待って終了コードを返します。
標準エラー出力は情報ログとしてのみ扱い、失敗判定には使いません。
"""

import asyncio
import re
from typing import List, Sequence

from .error_handler import RecordingError, ToolUnavailableError
from .utils.base import LoggerMixin

_LINE_SEPARATOR = re.compile(rb"[\r\n]")


class FFmpegRunner(LoggerMixin):
    """ffmpegプロセス実行クラス"""

    STDERR_CHUNK_SIZE = 4096

    def __init__(self, ffmpeg_path: str = "ffmpeg"):
        super().__init__()
        self.ffmpeg_path = ffmpeg_path

    def build_command(self, args: Sequence[str]) -> List[str]:
        return [self.ffmpeg_path, *args]

    async def run(self, args: Sequence[str]) -> int:
        """ffmpegを実行して終了を待つ

        Args:
            args: ffmpegに渡す引数（実行ファイルパスを除く）

        Returns:
            int: 終了コード（常に0）

        Raises:
            ToolUnavailableError: ffmpegを起動できない
            RecordingError: ffmpegが非ゼロで終了した
        """
        command = self.build_command(args)
        self.logger.debug(f"ffmpeg起動: {' '.join(command)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            self.logger.error(f"ffmpegプロセスの開始に失敗しました: {e}")
            raise ToolUnavailableError(
                f"ffmpegプロセスの開始に失敗しました: {e}",
                tool_path=self.ffmpeg_path
            )

        try:
            if process.stderr is not None:
                await self._log_diagnostics(process.stderr)
        finally:
            exit_code = await process.wait()

        if exit_code != 0:
            self.logger.error(f"ffmpegプロセスがエラーコード {exit_code} で終了しました")
            raise RecordingError(
                f"ffmpegプロセスがエラーコード {exit_code} で終了しました",
                exit_code=exit_code
            )

        return exit_code

    async def _log_diagnostics(self, stream: asyncio.StreamReader) -> None:
        """標準エラー出力を読み切り、1行ずつDEBUGログに出す

        進捗表示は改行ではなく\\rで区切られるため、固定長で読んで両方で分割する。
        """
        pending = b""
        while True:
            chunk = await stream.read(self.STDERR_CHUNK_SIZE)
            if not chunk:
                break
            *lines, pending = _LINE_SEPARATOR.split(pending + chunk)
            for line in lines:
                self._log_line(line)

        self._log_line(pending)

    def _log_line(self, line: bytes) -> None:
        text = line.decode('utf-8', errors='replace').strip()
        if text:
            self.logger.debug(f"ffmpeg: {text}")
