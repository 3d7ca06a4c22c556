"""
ProgramInfoManager単体テスト

放送局リスト・番組表XMLの解析、ディスクキャッシュ、並行取得をテスト。
キャッシュは一時ディレクトリの実ファイルで検証する。
"""

import unittest
from datetime import datetime
from unittest.mock import MagicMock, patch

import requests

from radiko_client.auth import AuthContext
from radiko_client.error_handler import ConfigError, NetworkError, ParseError
from radiko_client.program_info import (
    Program, ProgramCache, ProgramInfoManager, Station,
    parse_program_xml, parse_station_list_xml
)
from radiko_client.utils.datetime_utils import JST
from tests.utils.test_environment import (
    EMPTY_PROGRAM_XML, PROGRAM_XML, SINGLE_STATION_LIST_XML, STATION_LIST_XML,
    TemporaryTestEnvironment, make_program, make_response
)


class TestParseStationListXml(unittest.TestCase):
    """放送局リストXML解析テスト"""

    def test_01_文書順で全放送局を返す(self):
        stations = parse_station_list_xml(STATION_LIST_XML)

        self.assertEqual([s.id for s in stations], ['TBS', 'QRR', 'LFR'])
        self.assertEqual(stations[0], Station(id='TBS', name='TBSラジオ'))

    def test_02_放送局が1つでもリストになる(self):
        stations = parse_station_list_xml(SINGLE_STATION_LIST_XML)

        self.assertIsInstance(stations, list)
        self.assertEqual(stations, [Station(id='TBS', name='TBSラジオ')])

    def test_03_放送局がない場合は空リスト(self):
        self.assertEqual(parse_station_list_xml('<stations area_id="JP13"></stations>'), [])

    def test_04_不正なXML(self):
        with self.assertRaises(ParseError):
            parse_station_list_xml('<stations><station>')

    def test_05_stations要素がない(self):
        with self.assertRaises(ParseError):
            parse_station_list_xml('<radiko><foo/></radiko>')

    def test_06_idのない放送局(self):
        with self.assertRaises(ParseError):
            parse_station_list_xml('<stations><station><name>名前だけ</name></station></stations>')

    def test_07_bytes入力(self):
        stations = parse_station_list_xml(STATION_LIST_XML.encode('utf-8'))
        self.assertEqual(len(stations), 3)


class TestParseProgramXml(unittest.TestCase):
    """番組表XML解析テスト"""

    def test_01_番組を文書順で返す(self):
        programs = parse_program_xml(PROGRAM_XML)

        self.assertEqual(len(programs), 2)
        first = programs[0]
        self.assertEqual(first.id, '1001')
        self.assertEqual(first.title, '森本毅郎・スタンバイ!')
        self.assertEqual(first.start_time, '20250701050000')
        self.assertEqual(first.end_time, '20250701063000')
        self.assertEqual(first.performers, '森本毅郎')
        self.assertEqual(first.image_url, 'https://radiko.jp/res/program/DEFAULT_IMAGE/TBS/cover.jpg')
        self.assertEqual(first.station_id, 'TBS')
        self.assertEqual(first.station_name, 'TBSラジオ')

    def test_02_空のimgはNone(self):
        programs = parse_program_xml(PROGRAM_XML)
        self.assertIsNone(programs[1].image_url)

    def test_03_progsがない場合は空リスト(self):
        self.assertEqual(parse_program_xml(EMPTY_PROGRAM_XML), [])

    def test_04_放送局要素がない場合は空リスト(self):
        self.assertEqual(parse_program_xml('<radiko><stations/></radiko>'), [])

    def test_05_放送局IDと名前の既定値(self):
        xml = """<radiko><stations><station>
            <progs><prog id="1" ft="20250701050000" to="20250701060000"><title>番組</title></prog></progs>
        </station></stations></radiko>"""

        programs = parse_program_xml(xml)

        self.assertEqual(programs[0].station_id, 'unknown')
        self.assertEqual(programs[0].station_name, 'unknown station')
        self.assertEqual(programs[0].performers, '')

    def test_06_不正なXML(self):
        with self.assertRaises(ParseError):
            parse_program_xml('not xml at all')


class TestProgramModel(unittest.TestCase):
    """Programモデルテスト"""

    def test_01_時間帯表示(self):
        program = make_program(start_time='20250701130000', end_time='20250701153000')
        self.assertEqual(program.time_range_label(), '13:00 - 15:30')

    def test_02_放送終了判定(self):
        program = make_program(end_time='20250701150000')

        self.assertTrue(program.is_finished(JST.localize(datetime(2025, 7, 1, 15, 0, 1))))
        self.assertFalse(program.is_finished(JST.localize(datetime(2025, 7, 1, 14, 59, 59))))

    def test_03_開始時刻のdatetime(self):
        program = make_program(start_time='20250701130000')
        self.assertEqual(program.start_datetime, JST.localize(datetime(2025, 7, 1, 13, 0, 0)))


class TestProgramCache(unittest.TestCase):
    """番組表ディスクキャッシュテスト"""

    def setUp(self):
        self.temp_env = TemporaryTestEnvironment()
        self.temp_env.__enter__()
        self.cache = ProgramCache(self.temp_env.cache_dir)

    def tearDown(self):
        self.temp_env.__exit__(None, None, None)

    def test_01_キャッシュファイル名(self):
        self.assertEqual(self.cache.path_for('TBS', '20250701'),
                         self.temp_env.cache_dir / 'TBS_20250701.xml')

    def test_02_有効期限内のキャッシュ(self):
        self.temp_env.write_cache('TBS', '20250701', PROGRAM_XML, age_seconds=60)
        self.assertEqual(self.cache.read_fresh('TBS', '20250701'), PROGRAM_XML.encode('utf-8'))

    def test_03_期限切れキャッシュはread_freshで読まない(self):
        self.temp_env.write_cache('TBS', '20250701', PROGRAM_XML, age_seconds=3601)

        self.assertIsNone(self.cache.read_fresh('TBS', '20250701'))
        self.assertIsNotNone(self.cache.read_any('TBS', '20250701'))

    def test_04_キャッシュなし(self):
        self.assertIsNone(self.cache.read_fresh('QRR', '20250701'))
        self.assertIsNone(self.cache.read_any('QRR', '20250701'))

    def test_05_書き込みでディレクトリを作成(self):
        cache = ProgramCache(self.temp_env.temp_dir / 'nested' / 'cache')

        self.assertTrue(cache.write('TBS', '20250701', b'<radiko/>'))
        self.assertEqual(cache.path_for('TBS', '20250701').read_bytes(), b'<radiko/>')

    def test_06_書き込み失敗はFalse(self):
        # Given: キャッシュディレクトリの位置に通常ファイルがある
        blocker = self.temp_env.temp_dir / 'blocker'
        blocker.write_text('x')
        cache = ProgramCache(blocker)

        # When/Then: 例外にならずFalse
        self.assertFalse(cache.write('TBS', '20250701', b'<radiko/>'))


class TestProgramInfoManager(unittest.TestCase):
    """ProgramInfoManager取得テスト"""

    def setUp(self):
        self.temp_env = TemporaryTestEnvironment()
        self.temp_env.__enter__()
        self.session = MagicMock()
        self.manager = ProgramInfoManager(
            self.temp_env.cache_dir,
            session=self.session,
            auth_context=AuthContext(token='tok', area_code='JP13'),
        )

    def tearDown(self):
        self.temp_env.__exit__(None, None, None)

    def test_01_放送局リスト取得(self):
        self.session.get.return_value = make_response(200, STATION_LIST_XML.encode('utf-8'))

        stations = self.manager.get_stations()

        self.assertEqual(len(stations), 3)
        self.session.get.assert_called_once_with('https://radiko.jp/v2/station/list/JP13.xml')

    def test_02_引数のエリアコードを優先(self):
        self.session.get.return_value = make_response(200, SINGLE_STATION_LIST_XML.encode('utf-8'))

        self.manager.get_stations('JP27')

        self.session.get.assert_called_once_with('https://radiko.jp/v2/station/list/JP27.xml')

    def test_03_エリアコードなし(self):
        manager = ProgramInfoManager(self.temp_env.cache_dir, session=self.session)

        with self.assertRaises(ConfigError):
            manager.get_stations()
        self.session.get.assert_not_called()

    def test_04_放送局リストの非成功ステータス(self):
        self.session.get.return_value = make_response(500)

        with self.assertRaises(NetworkError) as cm:
            self.manager.get_stations()
        self.assertEqual(cm.exception.status_code, 500)

    def test_05_番組表取得でキャッシュを書き込む(self):
        self.session.get.return_value = make_response(200, PROGRAM_XML.encode('utf-8'))

        programs = self.manager.get_programs('TBS', '20250701')

        self.assertEqual(len(programs), 2)
        self.session.get.assert_called_once_with(
            'https://radiko.jp/v3/program/station/date/20250701/TBS.xml'
        )
        cache_file = self.temp_env.cache_dir / 'TBS_20250701.xml'
        self.assertEqual(cache_file.read_bytes(), PROGRAM_XML.encode('utf-8'))

    def test_06_1時間以内の再取得はネットワークを使わない(self):
        self.session.get.return_value = make_response(200, PROGRAM_XML.encode('utf-8'))

        first = self.manager.get_programs('TBS', '20250701')
        second = self.manager.get_programs('TBS', '20250701')

        self.assertEqual(first, second)
        self.assertEqual(self.session.get.call_count, 1)

    def test_07_期限切れキャッシュは再取得して上書き(self):
        # Given: 2時間前のキャッシュ（番組なし）
        self.temp_env.write_cache('TBS', '20250701', EMPTY_PROGRAM_XML, age_seconds=7200)
        self.session.get.return_value = make_response(200, PROGRAM_XML.encode('utf-8'))

        # When
        programs = self.manager.get_programs('TBS', '20250701')

        # Then: 新しい内容で上書きされる
        self.assertEqual(len(programs), 2)
        self.assertEqual(self.session.get.call_count, 1)
        cache_file = self.temp_env.cache_dir / 'TBS_20250701.xml'
        self.assertEqual(cache_file.read_bytes(), PROGRAM_XML.encode('utf-8'))

    def test_08_取得失敗時は期限切れキャッシュを使う(self):
        self.temp_env.write_cache('TBS', '20250701', PROGRAM_XML, age_seconds=7200)
        self.session.get.side_effect = requests.ConnectionError("offline")

        programs = self.manager.get_programs('TBS', '20250701')

        self.assertEqual(len(programs), 2)

    def test_09_取得失敗かつキャッシュなし(self):
        self.session.get.return_value = make_response(404)

        with self.assertRaises(NetworkError):
            self.manager.get_programs('TBS', '20250701')

    def test_10_解析できないキャッシュは再取得(self):
        self.temp_env.write_cache('TBS', '20250701', '<broken', age_seconds=10)
        self.session.get.return_value = make_response(200, PROGRAM_XML.encode('utf-8'))

        programs = self.manager.get_programs('TBS', '20250701')

        self.assertEqual(len(programs), 2)
        self.assertEqual(self.session.get.call_count, 1)

    def test_11_不正なXMLはキャッシュしない(self):
        self.session.get.return_value = make_response(200, b'<broken')

        with self.assertRaises(ParseError):
            self.manager.get_programs('TBS', '20250701')
        self.assertFalse((self.temp_env.cache_dir / 'TBS_20250701.xml').exists())

    def test_12_キャッシュ書き込み失敗でも結果を返す(self):
        self.session.get.return_value = make_response(200, PROGRAM_XML.encode('utf-8'))

        with patch.object(ProgramCache, 'write', return_value=False) as mock_write:
            programs = self.manager.get_programs('TBS', '20250701')

        self.assertEqual(len(programs), 2)
        mock_write.assert_called_once()


class TestProgramsForStations(unittest.TestCase):
    """複数放送局の並行取得テスト"""

    def setUp(self):
        self.temp_env = TemporaryTestEnvironment()
        self.temp_env.__enter__()
        self.manager = ProgramInfoManager(self.temp_env.cache_dir, session=MagicMock())

    def tearDown(self):
        self.temp_env.__exit__(None, None, None)

    def _fake_get_programs(self, station_id, date):
        if station_id == 'QRR':
            raise NetworkError("取得失敗", status_code=500)
        return [make_program(station_id=station_id)]

    def test_01_失敗した放送局を除外して入力順で返す(self):
        with patch.object(self.manager, 'get_programs', side_effect=self._fake_get_programs):
            results = self.manager.get_programs_for_stations(['LFR', 'QRR', 'TBS'], '20250701')

        self.assertEqual(list(results.keys()), ['LFR', 'TBS'])
        self.assertEqual(results['TBS'][0].station_id, 'TBS')

    def test_02_空の入力(self):
        self.assertEqual(self.manager.get_programs_for_stations([], '20250701'), {})


if __name__ == '__main__':
    unittest.main()
