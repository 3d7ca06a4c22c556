"""
ユーティリティ単体テスト

日時処理・パス処理・設定ファイル管理・HTTPセッションをテスト。
"""

import unittest
from datetime import date, datetime
from pathlib import Path

import pytz

from radiko_client.error_handler import ParseError
from radiko_client.utils.config_utils import DEFAULT_CONFIG, ConfigManager, Preferences, load_preferences
from radiko_client.utils.datetime_utils import (
    JST, format_date, format_time, parse_radiko_datetime, past_seven_days, today_jst
)
from radiko_client.utils.network_utils import create_radiko_session
from radiko_client.utils.path_utils import (
    ensure_directory_path_exists, remove_file_quietly, sanitize_filename
)
from tests.utils.test_environment import TemporaryTestEnvironment


class TestDatetimeUtils(unittest.TestCase):
    """日時処理テスト"""

    def test_01_radiko時刻の解析(self):
        parsed = parse_radiko_datetime('20250701050000')

        self.assertEqual(parsed, JST.localize(datetime(2025, 7, 1, 5, 0, 0)))
        self.assertEqual(parsed.utcoffset().total_seconds(), 9 * 3600)

    def test_02_不正な時刻文字列(self):
        for value in ['2025070105', '2025070105000a', '20251301050000', '', '202507010500000']:
            with self.subTest(value=value):
                with self.assertRaises(ParseError):
                    parse_radiko_datetime(value)

    def test_03_時刻表示(self):
        self.assertEqual(format_time('20250701053000'), '05:30')
        self.assertEqual(format_time('0530'), '')

    def test_04_日付フォーマット(self):
        self.assertEqual(format_date(date(2025, 7, 1)), '20250701')

    def test_05_過去7日間は古い順(self):
        days = past_seven_days(date(2025, 7, 3))

        self.assertEqual(len(days), 7)
        self.assertEqual(days[0], date(2025, 6, 27))
        self.assertEqual(days[-1], date(2025, 7, 3))

    def test_06_日本時間の今日(self):
        # UTC 2025-06-30 20:00 は JST 2025-07-01 05:00
        utc_now = pytz.utc.localize(datetime(2025, 6, 30, 20, 0, 0))
        self.assertEqual(today_jst(utc_now), date(2025, 7, 1))


class TestPathUtils(unittest.TestCase):
    """パス処理テスト"""

    def test_01_ファイル名の安全化(self):
        self.assertEqual(sanitize_filename('A/B: C?'), 'A_B_ C_')
        self.assertEqual(sanitize_filename('a\\b*c"d<e>f|g'), 'a_b_c_d_e_f_g')
        self.assertEqual(sanitize_filename('オールナイトニッポン'), 'オールナイトニッポン')

    def test_02_ディレクトリ作成(self):
        with TemporaryTestEnvironment() as env:
            target = env.temp_dir / 'a' / 'b'

            self.assertEqual(ensure_directory_path_exists(target), target)
            self.assertTrue(target.is_dir())
            # 既存ディレクトリでもエラーにならない
            ensure_directory_path_exists(target)

    def test_03_ファイル削除(self):
        with TemporaryTestEnvironment() as env:
            target = env.work_dir / 'temp.m4a'
            target.write_bytes(b'x')

            self.assertTrue(remove_file_quietly(target))
            self.assertFalse(target.exists())
            self.assertFalse(remove_file_quietly(target))
            self.assertFalse(remove_file_quietly(None))


class TestConfigManager(unittest.TestCase):
    """設定ファイル管理テスト"""

    def setUp(self):
        self.temp_env = TemporaryTestEnvironment()
        self.temp_env.__enter__()

    def tearDown(self):
        self.temp_env.__exit__(None, None, None)

    def test_01_ファイルがない場合はデフォルト(self):
        manager = ConfigManager(self.temp_env.temp_dir / 'missing.json')
        self.assertEqual(manager.load_config(DEFAULT_CONFIG), DEFAULT_CONFIG)

    def test_02_不正なJSONはデフォルト(self):
        self.temp_env.config_file.write_text('{invalid', encoding='utf-8')

        config = ConfigManager(self.temp_env.config_file).load_config({'ffmpeg_path': 'ffmpeg'})
        self.assertEqual(config, {'ffmpeg_path': 'ffmpeg'})

    def test_03_オブジェクト以外はデフォルト(self):
        self.temp_env.config_file.write_text('[1, 2]', encoding='utf-8')

        config = ConfigManager(self.temp_env.config_file).load_config({'ffmpeg_path': 'ffmpeg'})
        self.assertEqual(config, {'ffmpeg_path': 'ffmpeg'})

    def test_04_デフォルトとマージ(self):
        self.temp_env.write_config({'ffmpeg_path': '/usr/local/bin/ffmpeg'})

        config = ConfigManager(self.temp_env.config_file).load_config(DEFAULT_CONFIG)

        self.assertEqual(config['ffmpeg_path'], '/usr/local/bin/ffmpeg')
        self.assertEqual(config['log_level'], 'INFO')

    def test_05_デフォルト指定なしはファイル内容のみ(self):
        self.temp_env.write_config({'area_code': 'JP13', 'save_directory': '保存先'})

        config = ConfigManager(self.temp_env.config_file).load_config()

        self.assertEqual(config, {'area_code': 'JP13', 'save_directory': '保存先'})

    def test_06_利用者設定の読み込み(self):
        preferences = load_preferences(self.temp_env.config_file)

        self.assertEqual(preferences.save_directory, self.temp_env.recordings_dir)
        self.assertEqual(preferences.cache_dir, self.temp_env.cache_dir)
        self.assertEqual(preferences.ffmpeg_path, 'ffmpeg')
        self.assertIsNone(preferences.area_code)

    def test_07_nullと空文字はデフォルト値(self):
        preferences = Preferences.from_dict({'ffmpeg_path': '', 'save_directory': None, 'area_code': ''})

        self.assertEqual(preferences.ffmpeg_path, 'ffmpeg')
        self.assertEqual(preferences.save_directory, Path('~/Downloads').expanduser())
        self.assertIsNone(preferences.area_code)


class TestNetworkUtils(unittest.TestCase):
    """HTTPセッションテスト"""

    def test_01_標準ヘッダー(self):
        session = create_radiko_session()

        self.assertEqual(session.headers['User-Agent'], 'curl/7.56.1')
        self.assertEqual(session.headers['Accept'], '*/*')
        self.assertEqual(session.timeout, 30)

    def test_02_追加ヘッダー(self):
        session = create_radiko_session(timeout=5, additional_headers={'X-Test': '1'})

        self.assertEqual(session.headers['X-Test'], '1')
        self.assertEqual(session.timeout, 5)


if __name__ == '__main__':
    unittest.main()
