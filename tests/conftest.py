"""
pytest configuration and fixtures for radiko_client tests
"""

import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from tests.utils.test_environment import TemporaryTestEnvironment


@pytest.fixture
def temp_env():
    """一時テスト環境fixture"""
    with TemporaryTestEnvironment() as env:
        yield env


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """テストセッション全体の環境設定"""
    os.environ["RADIKO_CLIENT_TEST_MODE"] = "true"
    yield
    os.environ.pop("RADIKO_CLIENT_TEST_MODE", None)
