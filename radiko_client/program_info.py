"""
番組情報取得モジュール

このモジュールはradikoの放送局・番組表を取得・管理します。
- 放送局一覧の取得
- 番組表の取得（放送局・日付単位のディスクキャッシュ付き）
- 複数放送局の番組表の並行取得
- XMLから型付きモデルへの変換
"""

import time
import xml.etree.ElementTree as ET
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import requests
from tqdm import tqdm

from .auth import AuthContext
from .error_handler import ConfigError, NetworkError, ParseError, RadikoClientError
from .logging_config import get_logger
from .utils.base import LoggerMixin
from .utils.datetime_utils import format_time, parse_radiko_datetime
from .utils.network_utils import create_radiko_session
from .utils.path_utils import ensure_directory_path_exists

logger = get_logger(__name__)

UNKNOWN_STATION_ID = "unknown"
UNKNOWN_STATION_NAME = "unknown station"


@dataclass(frozen=True)
class Station:
    """放送局情報"""
    id: str
    name: str


@dataclass(frozen=True)
class Program:
    """番組情報（番組表の1エントリ）"""
    id: str
    title: str
    start_time: str  # YYYYMMDDHHmmss
    end_time: str    # YYYYMMDDHHmmss
    image_url: Optional[str]
    performers: str
    station_id: str
    station_name: str

    @property
    def start_datetime(self) -> datetime:
        return parse_radiko_datetime(self.start_time)

    @property
    def end_datetime(self) -> datetime:
        return parse_radiko_datetime(self.end_time)

    def time_range_label(self) -> str:
        """表示用の時間帯（例: "13:00 - 15:30"）"""
        return f"{format_time(self.start_time)} - {format_time(self.end_time)}"

    def is_finished(self, now: datetime) -> bool:
        """放送が終了しているか（タイムフリーで録音可能か）"""
        return now > self.end_datetime


def _parse_document(data: Union[str, bytes], kind: str) -> ET.Element:
    try:
        return ET.fromstring(data)
    except ET.ParseError as e:
        raise ParseError(f"{kind}のXML解析に失敗しました: {e}")


def _child_text(parent: ET.Element, tag: str) -> str:
    elem = parent.find(tag)
    if elem is None or elem.text is None:
        return ""
    return elem.text.strip()


def parse_station_list_xml(data: Union[str, bytes]) -> List[Station]:
    """放送局リストXMLをStationのリストに変換

    <station>要素1つにつきStation1つを文書順で返す。要素が1つでもリストになる。

    Raises:
        ParseError: XMLが不正、<stations>要素がない、<id>のない<station>がある
    """
    root = _parse_document(data, "放送局リスト")

    stations_elem = root if root.tag == 'stations' else root.find('.//stations')
    if stations_elem is None:
        raise ParseError("放送局リストに<stations>要素がありません")

    stations = []
    for index, station_elem in enumerate(stations_elem.findall('station')):
        station_id = _child_text(station_elem, 'id')
        if not station_id:
            raise ParseError(f"{index}番目の<station>に<id>がありません")
        stations.append(Station(id=station_id, name=_child_text(station_elem, 'name')))

    return stations


def parse_program_xml(data: Union[str, bytes]) -> List[Program]:
    """番組表XMLをProgramのリストに変換

    放送局ID・名前はルート付近の<station>から一度だけ読み取る（無ければ既定値）。
    番組エントリがない場合は空リストを返す。

    Raises:
        ParseError: XMLとして解析できない
    """
    root = _parse_document(data, "番組表")

    station_elem = root.find('.//stations/station')
    if station_elem is None:
        station_elem = root.find('.//station')
    if station_elem is None:
        return []

    station_id = station_elem.get('id') or UNKNOWN_STATION_ID
    station_name = _child_text(station_elem, 'name') or UNKNOWN_STATION_NAME

    programs = []
    for prog_elem in station_elem.findall('./progs/prog'):
        programs.append(Program(
            id=prog_elem.get('id', ''),
            title=_child_text(prog_elem, 'title'),
            start_time=prog_elem.get('ft', ''),
            end_time=prog_elem.get('to', ''),
            image_url=_child_text(prog_elem, 'img') or None,
            performers=_child_text(prog_elem, 'pfm'),
            station_id=station_id,
            station_name=station_name,
        ))

    return programs


class ProgramCache:
    """番組表XMLのディスクキャッシュ

    キー（放送局ID, 日付）ごとに {cache_dir}/{station_id}_{date}.xml を保持する。
    読み込み・stat失敗はキャッシュなしとして扱い、書き込み失敗はログのみ。
    同一キーへの同時書き込みは後勝ち。
    """

    DEFAULT_MAX_AGE_SECONDS = 60 * 60  # 1時間

    def __init__(self, cache_dir: Union[str, Path],
                 max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS):
        self.cache_dir = Path(cache_dir).expanduser()
        self.max_age_seconds = max_age_seconds

    def path_for(self, station_id: str, date: str) -> Path:
        return self.cache_dir / f"{station_id}_{date}.xml"

    def read_fresh(self, station_id: str, date: str) -> Optional[bytes]:
        """有効期限内のキャッシュ本文を返す（期限切れ・なし・読み込み失敗はNone）"""
        path = self.path_for(station_id, date)
        try:
            age = time.time() - path.stat().st_mtime
            if age >= self.max_age_seconds:
                logger.debug(f"キャッシュ期限切れ: {path} ({age:.0f}秒経過)")
                return None
            return path.read_bytes()
        except OSError:
            return None

    def read_any(self, station_id: str, date: str) -> Optional[bytes]:
        """期限に関係なくキャッシュ本文を返す（ネットワーク失敗時のフォールバック用）"""
        try:
            return self.path_for(station_id, date).read_bytes()
        except OSError:
            return None

    def write(self, station_id: str, date: str, body: bytes) -> bool:
        """キャッシュを書き込む（失敗してもエラーにしない）"""
        path = self.path_for(station_id, date)
        try:
            ensure_directory_path_exists(self.cache_dir)
            path.write_bytes(body)
        except OSError as e:
            logger.warning(f"番組表キャッシュの書き込みに失敗しました: {path} - {e}")
            return False
        return True


class ProgramInfoManager(LoggerMixin):
    """番組情報管理クラス"""

    # radiko API エンドポイント
    STATION_LIST_URL = "https://radiko.jp/v2/station/list/{area_code}.xml"
    PROGRAM_URL = "https://radiko.jp/v3/program/station/date/{date}/{station_id}.xml"

    def __init__(self, cache_dir: Union[str, Path],
                 session: Optional[requests.Session] = None,
                 auth_context: Optional[AuthContext] = None,
                 cache_max_age_seconds: float = ProgramCache.DEFAULT_MAX_AGE_SECONDS):
        super().__init__()
        self.session = session or create_radiko_session()
        self.auth_context = auth_context
        self.cache = ProgramCache(cache_dir, cache_max_age_seconds)

    def resolve_area_code(self, area_code: Optional[str] = None) -> str:
        """エリアコードを決定（引数優先、次に保持中の認証結果）"""
        code = area_code or (self.auth_context.area_code if self.auth_context else None)
        if not code:
            raise ConfigError(
                "エリアコードが指定されておらず、認証情報からも取得できませんでした。"
                "先に認証を行うか、エリアコードを指定してください。"
            )
        return code

    def get_stations(self, area_code: Optional[str] = None) -> List[Station]:
        """指定エリアの放送局リストを取得

        Raises:
            ConfigError: エリアコードを決定できない
            NetworkError: 取得失敗
            ParseError: XMLが不正
        """
        code = self.resolve_area_code(area_code)
        url = self.STATION_LIST_URL.format(area_code=code)

        self.logger.info(f"放送局リストを取得中: area_code={code}")
        body = self._fetch(url, "放送局リスト")

        stations = parse_station_list_xml(body)
        self.logger.info(f"放送局リスト取得完了: {len(stations)}局")
        return stations

    def get_programs(self, station_id: str, date: str) -> List[Program]:
        """指定放送局・日付（YYYYMMDD）の番組表を取得（キャッシュ優先）

        Raises:
            NetworkError: 取得失敗かつ利用可能なキャッシュがない
            ParseError: 取得したXMLが不正
        """
        cached = self.cache.read_fresh(station_id, date)
        if cached is not None:
            try:
                programs = parse_program_xml(cached)
            except ParseError as e:
                self.logger.warning(f"キャッシュの番組表が解析できないため再取得します: {e}")
            else:
                self.logger.info(f"番組表データをキャッシュから使用します: {station_id} {date}")
                return programs

        self.logger.info(f"番組表データをradikoから取得します: {station_id} {date}")
        url = self.PROGRAM_URL.format(date=date, station_id=station_id)
        try:
            body = self._fetch(url, "番組表")
        except NetworkError:
            stale = self.cache.read_any(station_id, date)
            if stale is None:
                raise
            self.logger.warning(f"番組表の取得に失敗したため期限切れキャッシュを使用します: {station_id} {date}")
            return parse_program_xml(stale)

        programs = parse_program_xml(body)
        self.cache.write(station_id, date, body)
        self.logger.info(f"番組表取得完了: {station_id} {len(programs)}番組")
        return programs

    def get_programs_for_stations(self, station_ids: Iterable[str], date: str,
                                  max_workers: int = 8,
                                  show_progress: bool = False) -> Dict[str, List[Program]]:
        """複数放送局の番組表を並行取得

        放送局ごとに独立して取得し、失敗した放送局はログに残して結果から除外する。

        Returns:
            放送局ID → 番組リスト（入力順）
        """
        station_ids = list(station_ids)
        results: Dict[str, List[Program]] = {}

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_station = {
                executor.submit(self.get_programs, station_id, date): station_id
                for station_id in station_ids
            }

            completed = as_completed(future_to_station)
            for future in tqdm(completed, total=len(future_to_station),
                               desc="番組表取得", unit="局", disable=not show_progress):
                station_id = future_to_station[future]
                try:
                    results[station_id] = future.result()
                except RadikoClientError as e:
                    self.logger.error(f"番組表取得エラー (station={station_id}): {e}")

        return {station_id: results[station_id] for station_id in station_ids if station_id in results}

    def _fetch(self, url: str, description: str) -> bytes:
        try:
            response = self.session.get(url)
        except requests.RequestException as e:
            self.logger.error(f"{description}取得エラー: {e}")
            raise NetworkError(f"radiko{description}の取得に失敗しました: {e}")

        if not response.ok:
            self.logger.error(f"{description}取得失敗: HTTP {response.status_code} {url}")
            raise NetworkError(
                f"radiko{description}の取得に失敗しました: HTTP {response.status_code}",
                status_code=response.status_code
            )

        return response.content
