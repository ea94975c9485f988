"""データベース接続管理モジュール

SQLAlchemy 2.x + asyncpg（本番）/ aiosqlite（テスト）を使用した接続の管理、
非同期セッション、トランザクション、ヘルスチェック機能を提供
"""

import logging
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from postboard.core.config import settings

logger = logging.getLogger(__name__)


class DatabaseConnectionError(Exception):
    """データベース接続関連のエラー"""

    pass


class DatabaseConfigurationError(Exception):
    """データベース設定関連のエラー"""

    pass


class DatabaseManager:
    """データベース接続を管理するクラス

    エンジンとセッションファクトリーは初回利用時に一度だけ作成し、以後は再利用する
    リポジトリにはここで作成したセッションを引数として渡す
    """

    def __init__(self, database_url: str | None = None) -> None:
        self._database_url = database_url
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def database_url(self) -> str:
        """接続先URL（未指定の場合は設定値）"""
        return self._database_url or settings.database_url_async

    def create_engine(self) -> AsyncEngine:
        """非同期SQLAlchemyエンジンを作成"""
        if self._engine is not None:
            return self._engine

        engine_kwargs: dict[str, Any] = {
            "echo": settings.DB_ECHO,
            "pool_pre_ping": True,  # 接続確認
        }

        # asyncpg固有の接続パラメータ
        if self.database_url.startswith("postgresql+asyncpg"):
            engine_kwargs["connect_args"] = {
                "server_settings": {
                    "application_name": f"{settings.PROJECT_NAME}-{settings.ENVIRONMENT}",
                    "timezone": "UTC",
                }
            }

        try:
            self._engine = create_async_engine(self.database_url, **engine_kwargs)
            logger.info(f"データベースエンジンが作成されました: {self._engine.url.render_as_string(hide_password=True)}")
            return self._engine

        except Exception as e:
            logger.error(f"データベースエンジンの作成に失敗しました: {e}")
            raise DatabaseConfigurationError(f"データベースエンジンを作成できません: {e}") from e

    def create_session_factory(self) -> async_sessionmaker[AsyncSession]:
        """非同期セッションファクトリーを作成"""
        if self._session_factory is not None:
            return self._session_factory

        engine = self.create_engine()

        self._session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,  # コミット後もオブジェクトを使用可能
            autoflush=True,
        )

        logger.info("データベースセッションファクトリーが作成されました")
        return self._session_factory

    async def get_session(self) -> AsyncGenerator[AsyncSession]:
        """データベースセッションを取得（依存性注入用）

        Yields:
            非同期データベースセッション
        """
        session_factory = self.create_session_factory()

        async with session_factory() as session:
            try:
                logger.debug("データベースセッションを作成しました")
                yield session
            except Exception as e:
                logger.error(f"セッション使用中にエラーが発生しました: {e}")
                await session.rollback()
                raise
            finally:
                await session.close()
                logger.debug("データベースセッションを閉じました")

    async def check_connection(self) -> bool:
        """データベース接続の健全性をチェック

        Returns:
            接続が正常な場合True、それ以外False
        """
        try:
            engine = self.create_engine()

            async with engine.begin() as conn:
                result = await conn.execute(text("SELECT 1"))
                result.scalar()

            logger.info("データベース接続チェック: 正常")
            return True

        except (SQLAlchemyError, DatabaseConfigurationError, OSError) as e:
            logger.error(f"データベース接続チェック失敗: {e}")
            return False

    async def close(self) -> None:
        """データベースエンジンとセッションを終了

        アプリケーション終了時に呼び出す
        """
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("データベースエンジンを閉じました")
            self._engine = None
            self._session_factory = None

    @property
    def engine(self) -> AsyncEngine | None:
        """現在のエンジンインスタンスを取得"""
        return self._engine

    @property
    def is_connected(self) -> bool:
        """エンジンが作成済みかどうかを確認"""
        return self._engine is not None


# グローバルデータベースマネージャーインスタンス
database_manager = DatabaseManager()


async def get_db() -> AsyncGenerator[AsyncSession]:
    """データベースセッション取得関数

    Yields:
        非同期データベースセッション

    Example:
        async for db in get_db():
            post = await post_repository.get_post_by_id(db, 1)
    """
    async for session in database_manager.get_session():
        yield session


# テーブル管理関数
async def create_tables(manager: DatabaseManager | None = None) -> None:
    """すべてのテーブルを作成

    注意: マイグレーションは行わない（既存テーブルはそのまま）
    """
    # 循環インポート回避のため遅延インポート
    from postboard.models import Base

    engine = (manager or database_manager).create_engine()
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("すべてのテーブルが作成されました")

    except Exception as e:
        logger.error(f"テーブル作成中にエラーが発生しました: {e}")
        raise


async def drop_tables(manager: DatabaseManager | None = None) -> None:
    """すべてのテーブルを削除（テスト用）

    注意: 絶対にテスト環境でのみ使用のこと
    """
    if not settings.is_testing:
        raise RuntimeError("drop_tables()はテスト環境でのみ実行可能です")

    from postboard.models import Base

    engine = (manager or database_manager).create_engine()
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

        logger.warning("すべてのテーブルが削除されました")

    except Exception as e:
        logger.error(f"テーブル削除中にエラーが発生しました: {e}")
        raise


# アプリケーションライフサイクル管理
async def init_database(*, create_schema: bool = False) -> None:
    """ログ設定を適用し、エンジンとセッションファクトリーを初期化して接続を確認"""
    from postboard.utils.error_handler import setup_logging

    setup_logging()

    try:
        database_manager.create_session_factory()

        is_connected = await database_manager.check_connection()
        if not is_connected:
            raise DatabaseConnectionError("データベースへの接続に失敗しました")

        if create_schema:
            await create_tables()

        logger.info("データベースの初期化が完了しました")

    except Exception as e:
        logger.error(f"データベース初期化中にエラーが発生しました: {e}")
        raise


async def close_database() -> None:
    """データベース接続を終了"""
    try:
        await database_manager.close()
        logger.info("データベース接続を正常に閉じました")

    except SQLAlchemyError as e:
        logger.error(f"データベース接続の終了中にエラーが発生しました: {e}")


async def health_check(manager: DatabaseManager | None = None) -> dict[str, Any]:
    """データベースのヘルスチェックを実行

    Returns:
        ヘルスチェック結果を含む辞書
    """
    manager = manager or database_manager
    is_connected = await manager.check_connection()

    if is_connected:
        return {
            "status": "healthy",
            "database": "connected",
            "backend": manager.engine.dialect.name if manager.engine else None,
        }

    return {
        "status": "unhealthy",
        "database": "disconnected",
        "error": "Connection failed",
    }


# トランザクション管理ユーティリティ
class DatabaseTransaction:
    """データベーストランザクションを管理するコンテキストマネージャー

    Example:
        async with DatabaseTransaction() as session:
            await post_tag_repository.link_tags(session, post_id, tags)
            # 正常終了時に自動コミット、例外時に自動ロールバック
    """

    def __init__(self, manager: DatabaseManager | None = None) -> None:
        self.manager = manager or database_manager
        self.session: AsyncSession | None = None

    async def __aenter__(self) -> AsyncSession:
        """トランザクションを開始"""
        session_factory = self.manager.create_session_factory()
        self.session = session_factory()
        return self.session

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any | None,
    ) -> None:
        """トランザクションを終了します。"""
        if self.session is None:
            return

        try:
            if exc_type is None:
                await self.session.commit()
                logger.debug("トランザクションをコミットしました")
            else:
                await self.session.rollback()
                logger.warning(f"トランザクションをロールバックしました: {exc_val}")
        finally:
            await self.session.close()
            logger.debug("トランザクションセッションを閉じました")
