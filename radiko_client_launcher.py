#!/usr/bin/env python3
"""
radiko-client - radiko番組表・タイムフリー録音ツール

インストールせずにリポジトリから直接起動するためのエントリーポイントです。
インストール済みの場合は `radiko-client` コマンドを使用してください。

使用例:
    python radiko_client_launcher.py stations
    python radiko_client_launcher.py record TBS 20250701130000
    python radiko_client_launcher.py --config custom_config.json today
"""

import sys
from pathlib import Path

# プロジェクトルートディレクトリをPythonパスに追加
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from radiko_client.cli import RadikoCLI


def main():
    """メインエントリーポイント"""
    try:
        cli = RadikoCLI()
        sys.exit(cli.run())
    except KeyboardInterrupt:
        print("\n操作がキャンセルされました")
        sys.exit(0)


if __name__ == "__main__":
    main()
