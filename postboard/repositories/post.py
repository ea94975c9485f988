"""投稿リポジトリ

投稿データアクセス層の抽象化
投稿本体にタグと著者情報を合成した集約（PostResponse）を返す
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from postboard.core.constants import PostConstants
from postboard.models.post import Post
from postboard.repositories.post_tag import PostTagRepository, post_tag_repository
from postboard.repositories.tag import TagRepository, tag_repository
from postboard.repositories.user import UserRepository, user_repository
from postboard.schemas.post import PostCreate, PostResponse, PostUpdate
from postboard.utils.db_helpers import extract_update_fields, map_update_columns
from postboard.utils.error_handler import PostNotFoundError, get_logger, handle_db_operation

logger = get_logger(__name__)

# 部分更新を許可するカラム（tagsは別処理）
_UPDATABLE_COLUMNS = {field: getattr(Post, field) for field in PostConstants.UPDATABLE_FIELDS}


class PostRepositoryInterface(ABC):
    """投稿リポジトリのインターフェース"""

    @abstractmethod
    async def create_post(self, db: AsyncSession, post_in: PostCreate) -> PostResponse:
        """投稿をタグ付きで作成"""
        pass

    @abstractmethod
    async def get_post_by_id(self, db: AsyncSession, post_id: int) -> PostResponse:
        """IDで投稿を取得"""
        pass

    @abstractmethod
    async def get_all_posts(self, db: AsyncSession) -> list[PostResponse]:
        """全投稿を取得"""
        pass

    @abstractmethod
    async def get_posts_by_user(self, db: AsyncSession, author_id: int) -> list[PostResponse]:
        """著者の投稿を取得"""
        pass

    @abstractmethod
    async def get_posts_by_tag_name(self, db: AsyncSession, tag_name: str) -> list[PostResponse]:
        """タグ名で投稿を取得"""
        pass

    @abstractmethod
    async def update_post(self, db: AsyncSession, post_id: int, fields: PostUpdate | Mapping[str, Any]) -> PostResponse:
        """投稿を部分更新"""
        pass


class PostRepository(PostRepositoryInterface):
    """投稿リポジトリの実装"""

    def __init__(self, tags: TagRepository, post_tags: PostTagRepository, users: UserRepository):
        """Args:

        tags: タグの取得・作成に使用するリポジトリ
        post_tags: 投稿とタグの関連付けに使用するリポジトリ
        users: 著者情報の取得に使用するリポジトリ
        """
        self.tags = tags
        self.post_tags = post_tags
        self.users = users

    @handle_db_operation("投稿作成")
    async def create_post(self, db: AsyncSession, post_in: PostCreate) -> PostResponse:
        """投稿をタグ付きで作成

        投稿行の作成、タグの取得・作成、関連付けを1トランザクションで行う
        途中で失敗した場合は何も残らない

        Args:
            db: データベースセッション
            post_in: 作成データ（tagsはタグ名のリスト）

        Returns:
            作成された投稿の集約
        """
        post = Post(author_id=post_in.author_id, title=post_in.title, content=post_in.content)
        db.add(post)
        await db.flush()
        post_id = post.id

        tags = await self.tags.upsert_tags(db, post_in.tags)
        await self.post_tags.link_tags(db, post_id, tags)
        await db.commit()

        return await self.get_post_by_id(db, post_id)

    @handle_db_operation("投稿取得")
    async def get_post_by_id(self, db: AsyncSession, post_id: int) -> PostResponse:
        """IDで投稿を取得

        Raises:
            PostNotFoundError: 投稿が存在しない場合
        """
        responses = await self._fetch_responses(db, self._base_query().where(Post.id == post_id))
        if not responses:
            raise PostNotFoundError(post_id)

        return responses[0]

    @handle_db_operation("投稿一覧取得")
    async def get_all_posts(self, db: AsyncSession) -> list[PostResponse]:
        """全投稿を取得（投稿ID昇順）"""
        return await self._fetch_responses(db, self._base_query())

    @handle_db_operation("著者別投稿取得")
    async def get_posts_by_user(self, db: AsyncSession, author_id: int) -> list[PostResponse]:
        """著者の投稿を取得（投稿ID昇順、該当なしは空リスト）"""
        return await self._fetch_responses(db, self._base_query().where(Post.author_id == author_id))

    @handle_db_operation("タグ別投稿取得")
    async def get_posts_by_tag_name(self, db: AsyncSession, tag_name: str) -> list[PostResponse]:
        """タグ名で投稿を取得（投稿ID昇順、該当なしは空リスト）"""
        post_ids = await self.tags.get_post_ids_by_tag_name(db, tag_name)
        if not post_ids:
            return []

        return await self._fetch_responses(db, self._base_query().where(Post.id.in_(post_ids)))

    @handle_db_operation("投稿更新")
    async def update_post(self, db: AsyncSession, post_id: int, fields: PostUpdate | Mapping[str, Any]) -> PostResponse:
        """投稿を部分更新

        - title / content: 指定されたもののみ更新
        - tags: 指定された場合は投稿のタグ集合をその内容に置き換える
          （未指定またはNoneの場合は変更しない、空リストの場合はすべて外す）

        更新全体が1トランザクションで行われる

        Args:
            db: データベースセッション
            post_id: 更新対象の投稿ID
            fields: 更新するフィールド

        Returns:
            更新後の投稿の集約

        Raises:
            PostNotFoundError: 投稿が存在しない場合
            InvalidFieldError: 許可されていないフィールドが含まれる場合
            ValidationError: 値がPostUpdateの制約を満たさない場合
        """
        update_data = extract_update_fields(fields, PostUpdate, "post")
        desired_tags = update_data.pop(PostConstants.TAGS_FIELD, None)

        # title / content は NOT NULL のため None は未指定として扱う
        update_data = {field: value for field, value in update_data.items() if value is not None}
        values = map_update_columns("post", update_data, _UPDATABLE_COLUMNS)

        result = await db.execute(select(Post.id).where(Post.id == post_id))
        if result.scalar_one_or_none() is None:
            raise PostNotFoundError(post_id)

        if values:
            stmt = update(Post).where(Post.id == post_id).values(values).execution_options(synchronize_session=False)
            await db.execute(stmt)

        if desired_tags is not None:
            await self._reconcile_tags(db, post_id, desired_tags)

        await db.commit()

        return await self.get_post_by_id(db, post_id)

    async def _reconcile_tags(self, db: AsyncSession, post_id: int, tag_names: list[str]) -> None:
        """投稿のタグ集合を指定されたタグ名の集合に置き換える（コミットしない）

        指定外の関連を削除し、指定されたタグをすべて関連付ける
        既に関連付いているタグの行はそのまま残る
        """
        tags = await self.tags.upsert_tags(db, tag_names)
        removed = await self.post_tags.unlink_tags_except(db, post_id, [tag.id for tag in tags])
        await self.post_tags.link_tags(db, post_id, tags)

        logger.debug(f"投稿 {post_id} のタグを更新: 指定 {len(tags)} 件, 削除 {removed} 件")

    def _base_query(self) -> Select[Any]:
        """集約の元になる投稿行の取得クエリ（投稿ID昇順）"""
        return select(Post.id, Post.author_id, Post.title, Post.content).order_by(Post.id)

    async def _fetch_responses(self, db: AsyncSession, stmt: Select[Any]) -> list[PostResponse]:
        """投稿行を取得して集約に変換

        投稿ごとに問い合わせず、タグと著者をそれぞれ1回のクエリでまとめて取得する
        """
        result = await db.execute(stmt)
        rows = result.all()

        if not rows:
            return []

        post_ids = [row.id for row in rows]
        tags_map = await self.tags.get_tags_for_posts(db, post_ids)
        authors_map = await self.users.get_summaries_by_ids(db, [row.author_id for row in rows])

        # Pydanticレスポンスモデルに変換（author_id は含めない）
        post_responses = []
        for row in rows:
            post_data: dict[str, Any] = {
                "id": row.id,
                "title": row.title,
                "content": row.content,
                "tags": tags_map.get(row.id, []),
                "author": authors_map[row.author_id],
            }
            post_responses.append(PostResponse.model_validate(post_data))

        return post_responses


# シングルトンインスタンス
post_repository = PostRepository(tag_repository, post_tag_repository, user_repository)
