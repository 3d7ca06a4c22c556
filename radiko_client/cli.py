"""
CLIインターフェースモジュール

radiko_clientのコマンドライン操作を提供します。
- 放送局一覧・番組表の表示
- 今日の全放送局の番組表
- タイムフリー録音
- ログ表示
"""

import argparse
import asyncio
import sys
from datetime import datetime
from typing import List, Optional

from .client import RadikoClient
from .error_handler import RadikoClientError
from .logging_config import get_log_file_path, reset_logging, setup_logging
from .program_info import Program
from .utils.base import LoggerMixin
from .utils.config_utils import Preferences, load_preferences
from .utils.datetime_utils import JST, format_date, past_seven_days, today_jst


class RadikoCLI(LoggerMixin):
    """radiko_client CLIメインクラス"""

    VERSION = "1.0.0"

    def __init__(self, client: Optional[RadikoClient] = None,
                 preferences: Optional[Preferences] = None):
        super().__init__()
        self._client = client
        self._preferences = preferences

    def create_parser(self) -> argparse.ArgumentParser:
        """コマンドライン引数パーサーを作成"""
        parser = argparse.ArgumentParser(
            prog='radiko-client',
            description='radikoの番組表表示・タイムフリー録音',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
使用例:
  radiko-client stations                     # 放送局一覧
  radiko-client programs TBS --date 20250701 # 番組表
  radiko-client today                        # 今日の番組表（全放送局）
  radiko-client record TBS 20250701130000    # タイムフリー録音
  radiko-client logs                         # ログ表示
            """
        )

        parser.add_argument('--version', action='version', version=f'radiko-client {self.VERSION}')
        parser.add_argument('--config', help='設定ファイルパス', default='config.json')
        parser.add_argument('--verbose', '-v', action='store_true', help='詳細ログを表示')

        subparsers = parser.add_subparsers(dest='command', required=True)

        stations = subparsers.add_parser('stations', help='放送局一覧を表示')
        stations.add_argument('--area', help='エリアコード（例: JP13）。省略時は認証結果を使用')

        programs = subparsers.add_parser('programs', help='番組表を表示')
        programs.add_argument('station_id', help='放送局ID（例: TBS）')
        programs.add_argument('--date', help='日付 YYYYMMDD（省略時は今日）')

        subparsers.add_parser('today', help='今日の番組表を全放送局分表示')
        subparsers.add_parser('dates', help='タイムフリーで選択できる日付を表示')

        record = subparsers.add_parser('record', help='タイムフリー録音')
        record.add_argument('station_id', help='放送局ID（例: TBS）')
        record.add_argument('start_time', help='番組開始時刻 YYYYMMDDHHmmss')
        record.add_argument('--date', help='番組表の日付 YYYYMMDD（省略時は開始時刻の日付）')
        record.add_argument('--output', help='保存先ディレクトリ（省略時は設定の保存先）')

        subparsers.add_parser('logs', help='ログファイルを表示')

        return parser

    def run(self, args: Optional[List[str]] = None) -> int:
        """CLIメインエントリーポイント"""
        parser = self.create_parser()
        parsed_args = parser.parse_args(args)

        if self._preferences is None:
            self._preferences = load_preferences(parsed_args.config)

        # モジュール読み込み時の既定設定を利用者設定で置き換える
        reset_logging()
        setup_logging(
            log_level='DEBUG' if parsed_args.verbose else self._preferences.log_level,
            log_file=self._preferences.log_file,
            console_output=True if parsed_args.verbose else None,
        )

        handler = getattr(self, f"_cmd_{parsed_args.command}")
        try:
            return handler(parsed_args)
        except RadikoClientError as e:
            self.logger.error(f"{parsed_args.command}コマンドエラー: {e}")
            print(f"エラー: {e}", file=sys.stderr)
            return 1
        except KeyboardInterrupt:
            print("\n操作がキャンセルされました")
            return 1

    @property
    def client(self) -> RadikoClient:
        if self._client is None:
            self._client = RadikoClient(self._preferences)
        return self._client

    def _cmd_stations(self, args) -> int:
        area = args.area or self._preferences.area_code
        if not area:
            area = self.client.ensure_authenticated().area_code

        for station in self.client.get_stations(area):
            print(f"{station.id:<12} {station.name}")
        return 0

    def _cmd_programs(self, args) -> int:
        date = args.date or format_date(today_jst())
        programs = self.client.get_programs(args.station_id, date)
        if not programs:
            print(f"番組が見つかりませんでした: {args.station_id} {date}")
            return 0

        self._print_programs(programs)
        return 0

    def _cmd_today(self, args) -> int:
        context = self.client.ensure_authenticated()
        stations = self.client.get_stations(self._preferences.area_code or context.area_code)
        if not stations:
            print("利用可能な放送局が見つかりませんでした")
            return 1

        date = format_date(today_jst())
        programs_by_station = self.client.get_programs_for_stations(
            [station.id for station in stations], date, show_progress=True
        )

        for station in stations:
            programs = programs_by_station.get(station.id)
            if not programs:
                continue
            print(f"\n■ {station.name}")
            self._print_programs(programs)
        return 0

    def _cmd_dates(self, args) -> int:
        for day in past_seven_days():
            print(format_date(day))
        return 0

    def _cmd_record(self, args) -> int:
        date = args.date or args.start_time[:8]
        self.client.ensure_authenticated()

        programs = self.client.get_programs(args.station_id, date)
        program = next((p for p in programs if p.start_time == args.start_time), None)
        if program is None:
            print(f"番組が見つかりませんでした: {args.station_id} {args.start_time}", file=sys.stderr)
            return 1

        if not program.is_finished(datetime.now(JST)):
            print(f"放送終了前の番組は録音できません: {program.title}", file=sys.stderr)
            return 1

        print(f"録音開始: {program.title} ({program.time_range_label()})")
        output_path = asyncio.run(self.client.record_program(program, args.output))
        print(f"録音が完了しました: {output_path}")
        return 0

    def _cmd_logs(self, args) -> int:
        log_path = get_log_file_path()
        try:
            print(log_path.read_text(encoding='utf-8'))
        except OSError as e:
            print(f"ログファイルの読み込みに失敗しました: {e}", file=sys.stderr)
            return 1
        return 0

    def _print_programs(self, programs: List[Program]) -> None:
        for program in programs:
            line = f"{program.time_range_label()}  {program.title}"
            if program.performers:
                line += f"  / {program.performers}"
            print(line)


def main():
    """メインエントリーポイント"""
    cli = RadikoCLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
