"""pytest設定とテスト環境インフラ

基本的なフィクスチャとテスト設定のエントリーポイント
"""

import os

# 設定モジュールの読み込み前にテスト環境を指定
os.environ["ENVIRONMENT"] = "testing"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-at-least-32-characters-long"

from collections.abc import AsyncGenerator, Generator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from tests.fixtures.entities import *  # noqa: E402, F403, F401
from tests.fixtures.sample_data import *  # noqa: E402, F403, F401
from tests.tests_config.database import get_test_db_session  # noqa: E402


@pytest.fixture(autouse=True)
def reset_config() -> Generator[None]:
    """テストごとに設定シングルトンをリセット"""
    from postboard.core.config import reset_settings

    reset_settings()
    yield
    reset_settings()


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession]:
    """テスト用データベースセッション"""
    async for session in get_test_db_session():
        yield session
