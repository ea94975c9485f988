"""エラーハンドリング関連ユーティリティ

ドメイン例外、ログ設定、データベース操作の例外処理を提供
"""

import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class NotFoundError(LookupError):
    """後続処理に実体が必要なリソースが存在しない場合のエラー"""

    pass


class PostNotFoundError(NotFoundError):
    """投稿が見つからない場合のエラー"""

    def __init__(self, post_id: int, message: str | None = None):
        from postboard.core.constants import ErrorMessages

        self.post_id = post_id
        super().__init__(message or f"{ErrorMessages.POST_NOT_FOUND}: {post_id}")


class InvalidFieldError(ValueError):
    """更新が許可されていないフィールドが指定された場合のエラー"""

    def __init__(self, entity: str, fields: list[str]):
        from postboard.core.constants import ErrorMessages

        self.entity = entity
        self.fields = fields
        super().__init__(f"{ErrorMessages.INVALID_UPDATE_FIELD} ({entity}): {', '.join(fields)}")


# 想定内の結果として扱う例外（ロールバックせず警告ログのみ）
_EXPECTED_ERRORS = (NotFoundError, InvalidFieldError, ValidationError)


def get_logger(name: str) -> logging.Logger:
    """統一フォーマットのロガー取得

    Args:
        name: ロガー名（通常は __name__ を渡す）

    Returns:
        設定済みのロガーインスタンス
    """
    return logging.getLogger(name)


def setup_logging(level: str | None = None) -> None:
    """ルートロガーを設定

    Args:
        level: ログレベル（未指定の場合は設定値のLOG_LEVEL）
    """
    if level is None:
        from postboard.core.config import get_settings

        level = get_settings().LOG_LEVEL

    logging.basicConfig(level=getattr(logging, level.upper()), format=LOG_FORMAT)


def _find_session(args: tuple[Any, ...], kwargs: dict[str, Any]) -> AsyncSession | None:
    """引数からデータベースセッションを探す"""
    db = kwargs.get("db")
    if isinstance(db, AsyncSession):
        return db

    for arg in args:
        if isinstance(arg, AsyncSession):
            return arg

    return None


def handle_db_operation(operation_name: str) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """データベース操作用デコレータ

    データベース操作でエラーが発生した場合の統一処理を提供
    - NotFoundError / InvalidFieldError / ValidationError: 警告ログのみ（セッションはそのまま）
    - その他: セッションのロールバック（途中までの書き込みを残さない）とエラーログ
    いずれの場合も例外は再発生する

    Args:
        operation_name: 操作名（ログ出力用）

    Usage:
        @handle_db_operation("投稿作成")
        async def create_post(self, db: AsyncSession, ...):
            # データベース操作
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            logger = get_logger(func.__module__)
            try:
                return await func(*args, **kwargs)
            except _EXPECTED_ERRORS as e:
                logger.warning(f"{operation_name}: {e}")
                raise
            except Exception as e:
                db = _find_session(args, kwargs)
                if db is not None:
                    try:
                        await db.rollback()
                    except Exception as rollback_error:
                        logger.error(f"ロールバック中にエラー: {rollback_error}")

                logger.error(f"{operation_name}エラー: {e}")
                raise

        return wrapper

    return decorator
