"""タグリポジトリ

タグデータアクセス層の抽象化
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.core.constants import ErrorMessages
from postboard.models.post_tag import PostTag
from postboard.models.tag import Tag
from postboard.schemas.tag import TagResponse, validate_tag_name
from postboard.utils.db_helpers import build_insert_ignore, unique_in_order
from postboard.utils.error_handler import handle_db_operation


def _validated_names(names: Iterable[str]) -> list[str]:
    """タグ名のリストを検証

    Raises:
        TypeError: 文字列が1つだけ渡された場合
        ValueError: 空白のみ、または長すぎるタグ名が含まれる場合
    """
    if isinstance(names, str):
        raise TypeError(ErrorMessages.TAG_NAMES_NOT_LIST)

    return [validate_tag_name(name) for name in names]


class TagRepositoryInterface(ABC):
    """タグリポジトリのインターフェース"""

    @abstractmethod
    async def create_tags(self, db: AsyncSession, names: Iterable[str]) -> list[TagResponse]:
        """タグ名のリストから正規のタグ行を取得（存在しなければ作成）"""
        pass

    @abstractmethod
    async def get_tags_for_posts(self, db: AsyncSession, post_ids: Sequence[int]) -> dict[int, list[TagResponse]]:
        """複数投稿のタグを一括取得"""
        pass

    @abstractmethod
    async def get_post_ids_by_tag_name(self, db: AsyncSession, tag_name: str) -> list[int]:
        """タグ名で投稿IDを取得"""
        pass


class TagRepository(TagRepositoryInterface):
    """タグリポジトリの実装"""

    @handle_db_operation("タグ作成")
    async def create_tags(self, db: AsyncSession, names: Iterable[str]) -> list[TagResponse]:
        """タグ名のリストから正規のタグ行を取得（存在しなければ作成）

        同じ名前で何度・同時に呼ばれても、タグ行は名前ごとに1行のみ

        Args:
            db: データベースセッション
            names: タグ名のリスト（重複は1つにまとめる）

        Returns:
            要求された名前に対応するタグ（既存・新規を問わない）

        Raises:
            TypeError: 文字列が1つだけ渡された場合
            ValueError: 不正なタグ名が含まれる場合
        """
        names = _validated_names(names)
        if not names:
            return []

        tags = await self.upsert_tags(db, names)
        await db.commit()
        return tags

    async def upsert_tags(self, db: AsyncSession, names: Iterable[str]) -> list[TagResponse]:
        """競合無視INSERTの後にSELECTで正規の行を取得（コミットしない）

        呼び出し元のトランザクション内で使用する
        """
        unique_names = unique_in_order(_validated_names(names))
        if not unique_names:
            return []

        # INSERT ... ON CONFLICT (name) DO NOTHING
        stmt = build_insert_ignore(db, Tag, [{"name": name} for name in unique_names], ["name"])
        await db.execute(stmt)

        # 既存・新規を問わず正規の行を取得
        result = await db.execute(select(Tag.id, Tag.name).where(Tag.name.in_(unique_names)).order_by(Tag.id))
        return [TagResponse(id=row.id, name=row.name) for row in result.all()]

    async def get_tags_for_posts(self, db: AsyncSession, post_ids: Sequence[int]) -> dict[int, list[TagResponse]]:
        """複数投稿のタグを一括取得

        投稿ごとに問い合わせず、結合クエリ1回で取得して振り分ける

        Returns:
            投稿IDをキーとするタグリスト（タグのない投稿は空リスト）
        """
        tags_map: dict[int, list[TagResponse]] = {post_id: [] for post_id in post_ids}
        if not tags_map:
            return tags_map

        stmt = (
            select(PostTag.post_id, Tag.id, Tag.name)
            .join(Tag, PostTag.tag_id == Tag.id)
            .where(PostTag.post_id.in_(list(tags_map)))
            .order_by(PostTag.post_id, Tag.id)
        )
        result = await db.execute(stmt)

        for row in result.all():
            tags_map[row.post_id].append(TagResponse(id=row.id, name=row.name))

        return tags_map

    async def get_post_ids_by_tag_name(self, db: AsyncSession, tag_name: str) -> list[int]:
        """タグ名で投稿IDを取得（投稿ID昇順）"""
        stmt = (
            select(PostTag.post_id)
            .join(Tag, PostTag.tag_id == Tag.id)
            .where(Tag.name == tag_name)
            .order_by(PostTag.post_id)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())


# シングルトンインスタンス
tag_repository = TagRepository()
