"""PostTag リポジトリ

投稿とタグの関連（中間テーブル）のデータアクセス層
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import TYPE_CHECKING

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.models.post_tag import PostTag
from postboard.schemas.tag import TagResponse
from postboard.utils.db_helpers import build_insert_ignore
from postboard.utils.error_handler import get_logger, handle_db_operation

if TYPE_CHECKING:
    from postboard.schemas.post import PostResponse

logger = get_logger(__name__)


class PostTagRepositoryInterface(ABC):
    """PostTag リポジトリのインターフェース"""

    @abstractmethod
    async def link_post_tag(self, db: AsyncSession, post_id: int, tag_id: int) -> None:
        """投稿とタグを関連付け（既に関連付いていれば何もしない）"""
        pass

    @abstractmethod
    async def attach_tags(self, db: AsyncSession, post_id: int, tags: Iterable[TagResponse]) -> "PostResponse":
        """投稿に複数タグを関連付けて集約結果を返す"""
        pass


class PostTagRepository(PostTagRepositoryInterface):
    """PostTag リポジトリの実装"""

    @handle_db_operation("投稿タグ関連付け")
    async def link_post_tag(self, db: AsyncSession, post_id: int, tag_id: int) -> None:
        """投稿とタグを関連付け

        INSERT ... ON CONFLICT (post_id, tag_id) DO NOTHING のため何度呼んでも同じ結果

        Args:
            db: データベースセッション
            post_id: 投稿ID
            tag_id: タグID
        """
        stmt = build_insert_ignore(db, PostTag, {"post_id": post_id, "tag_id": tag_id}, PostTag.conflict_columns())
        await db.execute(stmt)
        await db.commit()

    async def link_tags(self, db: AsyncSession, post_id: int, tags: Iterable[TagResponse]) -> None:
        """複数タグを一括で関連付け（コミットしない）"""
        rows = [{"post_id": post_id, "tag_id": tag.id} for tag in tags]
        if not rows:
            return

        stmt = build_insert_ignore(db, PostTag, rows, PostTag.conflict_columns())
        await db.execute(stmt)

    async def unlink_tags_except(self, db: AsyncSession, post_id: int, keep_tag_ids: Iterable[int]) -> int:
        """指定タグ以外の関連を削除（コミットしない）

        Args:
            db: データベースセッション
            post_id: 投稿ID
            keep_tag_ids: 残すタグID（空の場合はすべての関連を削除）

        Returns:
            削除された関連の数
        """
        stmt = delete(PostTag).where(PostTag.post_id == post_id)

        keep_tag_ids = list(keep_tag_ids)
        if keep_tag_ids:
            stmt = stmt.where(PostTag.tag_id.not_in(keep_tag_ids))

        result = await db.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount or 0

    @handle_db_operation("投稿タグ一括関連付け")
    async def attach_tags(self, db: AsyncSession, post_id: int, tags: Iterable[TagResponse]) -> "PostResponse":
        """投稿に複数タグを関連付けて集約結果を返す

        Raises:
            IntegrityError: 投稿またはタグが存在しない場合（外部キー制約違反）
        """
        from postboard.repositories.post import post_repository

        await self.link_tags(db, post_id, tags)
        await db.commit()

        logger.debug(f"投稿 {post_id} にタグを関連付けました")
        return await post_repository.get_post_by_id(db, post_id)


# シングルトンインスタンス
post_tag_repository = PostTagRepository()
