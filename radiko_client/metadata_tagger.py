"""
メタデータ埋め込みモジュール

録音済みの一時音声ファイルにカバー画像とメタデータ（title/artist/album）を
ffmpegで埋め込み、最終出力パスへ書き出します。
埋め込みに失敗した場合は一時音声ファイルをそのまま最終パスへ移動し、
録音自体は保全します。
"""

import asyncio
import os
import shutil
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union
from urllib.parse import urlparse

import aiohttp

from .error_handler import ConfigError, RadikoClientError
from .ffmpeg_runner import FFmpegRunner
from .utils.base import LoggerMixin
from .utils.path_utils import remove_file_quietly

PathLike = Union[str, Path]


class CoverDownloadError(RadikoClientError):
    """カバー画像のダウンロード失敗（録音全体は失敗させない）"""
    pass


@dataclass(frozen=True)
class TaggingResult:
    """メタデータ埋め込み結果"""
    output_path: Path
    tagged: bool
    cover_embedded: bool


def cover_image_extension(image_url: str) -> str:
    """画像URLから拡張子を推定（不明な場合はjpg）"""
    suffix = Path(urlparse(image_url).path).suffix.lstrip('.')
    return suffix.lower() if suffix else "jpg"


def temp_cover_path(image_url: str) -> Path:
    """カバー画像用の一時ファイルパス（ジョブ間で衝突しない名前）"""
    return Path(tempfile.gettempdir()) / f"radiko_cover_{uuid.uuid4().hex}.{cover_image_extension(image_url)}"


class MetadataTagger(LoggerMixin):
    """カバー画像・メタデータ埋め込みクラス"""

    ID3V2_VERSION = "3"
    DOWNLOAD_TIMEOUT = 30

    def __init__(self, runner: Optional[FFmpegRunner] = None, ffmpeg_path: str = "ffmpeg"):
        super().__init__()
        self.runner = runner or FFmpegRunner(ffmpeg_path)

    def build_tagging_args(self, audio_path: PathLike, output_path: PathLike,
                           title: str, artist: str, album: str,
                           image_path: Optional[PathLike] = None) -> List[str]:
        """メタデータ埋め込み用のffmpeg引数を生成"""
        args = ["-y", "-i", str(audio_path)]

        if image_path:
            args += [
                "-i", str(image_path),
                "-map", "0:a",
                "-map", "1:v",
                "-c", "copy",
                "-disposition:1", "attached_pic",
            ]

        args += [
            "-metadata", f"title={title}",
            "-metadata", f"artist={artist}",
            "-metadata", f"album={album}",
            "-id3v2_version", self.ID3V2_VERSION,
            str(output_path),
        ]
        return args

    async def download_cover(self, image_url: str, destination: PathLike) -> Path:
        """カバー画像をダウンロードして保存

        Raises:
            CoverDownloadError: 非成功ステータス・通信失敗・書き込み失敗
        """
        destination = Path(destination)
        timeout = aiohttp.ClientTimeout(total=self.DOWNLOAD_TIMEOUT)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(image_url) as response:
                    if response.status != 200:
                        raise CoverDownloadError(
                            f"カバー画像のダウンロードに失敗しました: HTTP {response.status}"
                        )
                    data = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise CoverDownloadError(f"カバー画像のダウンロードに失敗しました: {e}")

        try:
            destination.write_bytes(data)
        except OSError as e:
            raise CoverDownloadError(f"カバー画像の保存に失敗しました: {e}")

        self.logger.info(f"カバー画像を一時ファイルに保存しました: {destination}")
        return destination

    async def add_metadata(self, temp_audio_path: PathLike, final_path: PathLike,
                           title: str, artist: str, album: str,
                           cover_image_path: Optional[PathLike] = None,
                           cover_image_url: Optional[str] = None) -> str:
        """一時音声ファイルにメタデータ（とカバー画像）を埋め込み最終パスへ出力

        Args:
            temp_audio_path: 入力音声ファイル（録音済みの一時ファイル）
            final_path: 出力ファイルパス。temp_audio_pathとは異なること
            title: 曲名（番組名）
            artist: アーティスト（出演者）
            album: アルバム（放送局名）
            cover_image_path: カバー画像のパス（URL指定時はダウンロード先）
            cover_image_url: 未ダウンロードのカバー画像URL

        Returns:
            str: 最終出力パス

        Raises:
            ConfigError: 入力パスと出力パスが同じ
        """
        result = await self.tag(temp_audio_path, final_path, title, artist, album,
                                cover_image_path, cover_image_url)
        return str(result.output_path)

    async def tag(self, temp_audio_path: PathLike, final_path: PathLike,
                  title: str, artist: str, album: str,
                  cover_image_path: Optional[PathLike] = None,
                  cover_image_url: Optional[str] = None) -> 'TaggingResult':
        """add_metadataと同じ処理を行い、埋め込みの成否も返す"""
        temp_audio_path = Path(temp_audio_path)
        final_path = Path(final_path)

        if os.path.abspath(temp_audio_path) == os.path.abspath(final_path):
            raise ConfigError("入力ファイルパスと出力ファイルパスを同じにすることはできません")

        image_path = Path(cover_image_path) if cover_image_path else None
        downloaded: Optional[Path] = None

        try:
            if cover_image_url and (image_path is None or not image_path.exists()):
                destination = image_path or temp_cover_path(cover_image_url)
                # 失敗時に途中のファイルが残っていても後始末の対象にする
                downloaded = destination
                try:
                    image_path = await self.download_cover(cover_image_url, destination)
                except Exception as e:
                    image_path = None
                    self.logger.warning(f"{e}。カバー画像なしでメタデータを埋め込みます。")

            try:
                args = self.build_tagging_args(temp_audio_path, final_path, title, artist, album, image_path)
                await self.runner.run(args)
            except Exception as e:
                # 録音済みの音声は失わない
                self.logger.error(
                    f"カバー画像またはメタデータの追加に失敗しました: {e}。"
                    "録音ファイルはメタデータなしで保存されます。"
                )
                shutil.move(str(temp_audio_path), str(final_path))
                return TaggingResult(output_path=final_path, tagged=False, cover_embedded=False)

            self.logger.info(f"メタデータとカバー画像の追加に成功しました: {final_path}")
            return TaggingResult(output_path=final_path, tagged=True,
                                 cover_embedded=image_path is not None)

        finally:
            remove_file_quietly(downloaded)
