"""投稿リポジトリテスト

投稿の作成、集約取得、タグ集合の置き換え（差分更新）、トランザクションのテスト
"""

import logging
from typing import Any

import pytest
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.models.post import Post
from postboard.models.post_tag import PostTag
from postboard.models.user import User
from postboard.repositories.post import post_repository
from postboard.repositories.user import user_repository
from postboard.schemas.post import PostCreate, PostUpdate
from postboard.schemas.user import UserCreate
from postboard.utils.error_handler import InvalidFieldError, NotFoundError, PostNotFoundError


def _tag_names(post: Any) -> list[str]:
    return [tag.name for tag in post.tags]


class TestEndToEnd:
    """登録から投稿取得までの一連の流れ"""

    @pytest.mark.asyncio
    async def test_user_post_scenario(self, db_session: AsyncSession) -> None:
        """ユーザー登録・投稿作成・取得で期待どおりの形になる"""
        user = await user_repository.create_user(
            db_session, UserCreate(username="alice", password="pw", name="Alice", location="NY")
        )
        assert user is not None
        assert user.model_dump() == {"id": 1, "username": "alice", "password": "pw", "name": "Alice", "location": "NY"}

        await post_repository.create_post(
            db_session, PostCreate(author_id=1, title="Hello", content="World", tags=["#intro"])
        )
        post = await post_repository.get_post_by_id(db_session, 1)

        assert post.model_dump() == {
            "id": 1,
            "title": "Hello",
            "content": "World",
            "tags": [{"id": 1, "name": "#intro"}],
            "author": {"id": 1, "username": "alice", "name": "Alice", "location": "NY"},
        }


class TestCreatePost:
    """投稿作成テスト"""

    @pytest.mark.asyncio
    async def test_create_post_returns_aggregate(
        self, db_session: AsyncSession, test_user: dict[str, Any], sample_post_data: dict[str, Any]
    ) -> None:
        """作成結果は集約（author_idなし、著者のパスワードなし）"""
        post = await post_repository.create_post(db_session, PostCreate(author_id=test_user["id"], **sample_post_data))

        data = post.model_dump()
        assert "author_id" not in data
        assert "password" not in data["author"]
        assert _tag_names(post) == ["#intro"]

    @pytest.mark.asyncio
    async def test_create_post_without_tags(self, db_session: AsyncSession, test_user: dict[str, Any]) -> None:
        """タグなしの投稿"""
        post = await post_repository.create_post(db_session, PostCreate(author_id=test_user["id"], title="Plain"))

        assert post.tags == []
        assert post.content == ""

    @pytest.mark.asyncio
    async def test_create_post_shares_existing_tags(self, db_session: AsyncSession, test_post: dict[str, Any]) -> None:
        """既存タグ名は新しい行を作らずに共有される"""
        post = await post_repository.create_post(
            db_session, PostCreate(author_id=1, title="Second", tags=["#intro", "#new"])
        )

        intro_id = test_post["post"].tags[0].id
        assert {tag.name: tag.id for tag in post.tags}["#intro"] == intro_id

    @pytest.mark.asyncio
    async def test_create_post_duplicate_tag_names(self, db_session: AsyncSession, test_user: dict[str, Any]) -> None:
        """同じタグ名を複数指定しても関連は1つ"""
        post = await post_repository.create_post(
            db_session, PostCreate(author_id=test_user["id"], title="Dup", tags=["#a", "#a"])
        )

        assert _tag_names(post) == ["#a"]

    @pytest.mark.asyncio
    async def test_create_post_unknown_author_fails(self, db_session: AsyncSession) -> None:
        """存在しない著者では作成できず、何も残らない"""
        with pytest.raises(IntegrityError):
            await post_repository.create_post(db_session, PostCreate(author_id=999, title="Orphan", tags=["#x"]))

        result = await db_session.execute(select(func.count()).select_from(Post))
        assert result.scalar() == 0

    @pytest.mark.asyncio
    async def test_create_post_failure_mid_way_rolls_back(
        self, db_session: AsyncSession, test_user: dict[str, Any], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """投稿行の作成後に失敗した場合も投稿は残らない"""

        async def failing_link_tags(*args: Any, **kwargs: Any) -> None:
            raise RuntimeError("link failed")

        monkeypatch.setattr(post_repository.post_tags, "link_tags", failing_link_tags)

        with pytest.raises(RuntimeError):
            await post_repository.create_post(
                db_session, PostCreate(author_id=test_user["id"], title="Broken", tags=["#x"])
            )

        result = await db_session.execute(select(func.count()).select_from(Post))
        assert result.scalar() == 0


class TestGetPosts:
    """投稿取得テスト"""

    @pytest.mark.asyncio
    async def test_get_post_by_id_unknown_raises(self, db_session: AsyncSession) -> None:
        """存在しない投稿IDはPostNotFoundError"""
        with pytest.raises(PostNotFoundError) as exc_info:
            await post_repository.get_post_by_id(db_session, 999)

        assert exc_info.value.post_id == 999
        assert isinstance(exc_info.value, NotFoundError)

    @pytest.mark.asyncio
    async def test_get_post_by_id_unknown_is_logged_as_warning(
        self, db_session: AsyncSession, caplog: pytest.LogCaptureFixture
    ) -> None:
        """投稿が見つからない場合は警告ログが出力される"""
        with caplog.at_level(logging.WARNING, logger="postboard.repositories.post"):
            with pytest.raises(PostNotFoundError):
                await post_repository.get_post_by_id(db_session, 999)

        assert [record.levelno for record in caplog.records] == [logging.WARNING]

    @pytest.mark.asyncio
    async def test_get_post_by_id_unknown_keeps_pending_changes(self, db_session: AsyncSession) -> None:
        """投稿が見つからない場合も呼び出し元の未コミットの変更は破棄されない"""
        db_session.add(User(username="pending", password="pw"))
        await db_session.flush()

        with pytest.raises(PostNotFoundError):
            await post_repository.get_post_by_id(db_session, 999)

        result = await db_session.execute(select(User.username))
        assert list(result.scalars().all()) == ["pending"]

    @pytest.mark.asyncio
    async def test_get_all_posts_empty(self, db_session: AsyncSession) -> None:
        """投稿がない場合は空リスト"""
        assert await post_repository.get_all_posts(db_session) == []

    @pytest.mark.asyncio
    async def test_get_all_posts_ordered_with_tags_and_authors(
        self, db_session: AsyncSession, test_user: dict[str, Any], other_user: dict[str, Any]
    ) -> None:
        """全投稿がID昇順で、それぞれのタグと著者付きで返される"""
        await post_repository.create_post(db_session, PostCreate(author_id=test_user["id"], title="1", tags=["#a"]))
        await post_repository.create_post(db_session, PostCreate(author_id=other_user["id"], title="2"))
        await post_repository.create_post(
            db_session, PostCreate(author_id=test_user["id"], title="3", tags=["#a", "#b"])
        )

        posts = await post_repository.get_all_posts(db_session)

        assert [post.id for post in posts] == [1, 2, 3]
        assert [_tag_names(post) for post in posts] == [["#a"], [], ["#a", "#b"]]
        assert [post.author.username for post in posts if post.author] == ["alice", "bob", "alice"]

    @pytest.mark.asyncio
    async def test_get_posts_by_user(
        self, db_session: AsyncSession, test_user: dict[str, Any], other_user: dict[str, Any]
    ) -> None:
        """著者で絞り込まれる"""
        await post_repository.create_post(db_session, PostCreate(author_id=test_user["id"], title="mine"))
        await post_repository.create_post(db_session, PostCreate(author_id=other_user["id"], title="theirs"))

        posts = await post_repository.get_posts_by_user(db_session, other_user["id"])

        assert [post.title for post in posts] == ["theirs"]
        assert await post_repository.get_posts_by_user(db_session, 999) == []

    @pytest.mark.asyncio
    async def test_get_posts_by_tag_name(self, db_session: AsyncSession, test_user: dict[str, Any]) -> None:
        """タグ名で絞り込まれ、各投稿はすべてのタグを持つ"""
        await post_repository.create_post(db_session, PostCreate(author_id=1, title="a", tags=["#news", "#x"]))
        await post_repository.create_post(db_session, PostCreate(author_id=1, title="b", tags=["#x"]))
        await post_repository.create_post(db_session, PostCreate(author_id=1, title="c", tags=["#news"]))

        posts = await post_repository.get_posts_by_tag_name(db_session, "#news")

        assert [post.title for post in posts] == ["a", "c"]
        assert _tag_names(posts[0]) == ["#news", "#x"]

    @pytest.mark.asyncio
    async def test_get_posts_by_unknown_tag_name(self, db_session: AsyncSession, test_post: dict[str, Any]) -> None:
        """存在しないタグ名では空リスト"""
        assert await post_repository.get_posts_by_tag_name(db_session, "#nonexistent") == []


class TestUpdatePost:
    """投稿更新テスト"""

    @pytest.mark.asyncio
    async def test_update_post_fields(self, db_session: AsyncSession, test_post: dict[str, Any]) -> None:
        """タイトル・本文の部分更新（タグはそのまま）"""
        post = await post_repository.update_post(db_session, test_post["id"], {"title": "Hello again"})

        assert post.title == "Hello again"
        assert post.content == "World"
        assert _tag_names(post) == ["#intro"]

    @pytest.mark.asyncio
    async def test_update_post_reconciles_tags(self, db_session: AsyncSession, test_user: dict[str, Any]) -> None:
        """タグ集合が指定どおりに置き換えられる"""
        created = await post_repository.create_post(
            db_session, PostCreate(author_id=test_user["id"], title="t", tags=["#a", "#b"])
        )

        post = await post_repository.update_post(db_session, created.id, {"tags": ["#a"]})

        assert _tag_names(post) == ["#a"]
        fetched = await post_repository.get_post_by_id(db_session, created.id)
        assert _tag_names(fetched) == ["#a"]

    @pytest.mark.asyncio
    async def test_update_post_keeps_ids_of_retained_tags(
        self, db_session: AsyncSession, test_user: dict[str, Any]
    ) -> None:
        """残ったタグのIDは変わらず、新しいタグが追加される"""
        created = await post_repository.create_post(
            db_session, PostCreate(author_id=test_user["id"], title="t", tags=["#a", "#b"])
        )
        before = {tag.name: tag.id for tag in created.tags}

        post = await post_repository.update_post(db_session, created.id, PostUpdate(tags=["#b", "#c"]))
        after = {tag.name: tag.id for tag in post.tags}

        assert set(after) == {"#b", "#c"}
        assert after["#b"] == before["#b"]

    @pytest.mark.asyncio
    async def test_update_post_empty_tags_clears(self, db_session: AsyncSession, test_post: dict[str, Any]) -> None:
        """空のタグリストはすべてのタグを外す"""
        post = await post_repository.update_post(db_session, test_post["id"], {"tags": []})

        assert post.tags == []
        result = await db_session.execute(select(func.count()).select_from(PostTag))
        assert result.scalar() == 0

    @pytest.mark.asyncio
    async def test_update_post_missing_tags_keeps_tags(
        self, db_session: AsyncSession, test_post: dict[str, Any]
    ) -> None:
        """tagsを指定しない場合（None含む）はタグを変更しない"""
        post = await post_repository.update_post(db_session, test_post["id"], PostUpdate(content="changed"))
        assert _tag_names(post) == ["#intro"]

        post = await post_repository.update_post(db_session, test_post["id"], {"tags": None})
        assert _tag_names(post) == ["#intro"]

    @pytest.mark.asyncio
    async def test_update_post_empty_fields_returns_unchanged(
        self, db_session: AsyncSession, test_post: dict[str, Any]
    ) -> None:
        """更新フィールドが空の場合は変更のない集約を返す"""
        post = await post_repository.update_post(db_session, test_post["id"], {})

        assert post == test_post["post"]

    @pytest.mark.asyncio
    async def test_update_post_unknown_id_raises(self, db_session: AsyncSession) -> None:
        """存在しない投稿IDはPostNotFoundError"""
        with pytest.raises(PostNotFoundError):
            await post_repository.update_post(db_session, 999, {"title": "x"})

    @pytest.mark.asyncio
    async def test_update_post_rejects_unknown_field(
        self, db_session: AsyncSession, test_post: dict[str, Any]
    ) -> None:
        """許可されていないフィールドはエラーとなり、何も書き込まれない"""
        with pytest.raises(InvalidFieldError) as exc_info:
            await post_repository.update_post(
                db_session, test_post["id"], {"title": "new", "author_id": 2, "tags": ["#z"]}
            )

        assert exc_info.value.fields == ["author_id"]

        post = await post_repository.get_post_by_id(db_session, test_post["id"])
        assert post == test_post["post"]

    @pytest.mark.asyncio
    async def test_update_post_mapping_rejects_blank_title(
        self, db_session: AsyncSession, test_post: dict[str, Any]
    ) -> None:
        """辞書で渡した空のタイトルも拒否される"""
        with pytest.raises(ValidationError):
            await post_repository.update_post(db_session, test_post["id"], {"title": ""})

        post = await post_repository.get_post_by_id(db_session, test_post["id"])
        assert post.title == "Hello"

    @pytest.mark.asyncio
    async def test_update_post_mapping_rejects_string_tags(
        self, db_session: AsyncSession, test_post: dict[str, Any]
    ) -> None:
        """tagsに文字列を渡した場合は1文字ずつのタグにならずエラーとなる"""
        with pytest.raises(ValidationError):
            await post_repository.update_post(db_session, test_post["id"], {"tags": "#ab"})

        post = await post_repository.get_post_by_id(db_session, test_post["id"])
        assert _tag_names(post) == ["#intro"]

    @pytest.mark.asyncio
    async def test_update_post_mapping_rejects_blank_tag_name(
        self, db_session: AsyncSession, test_post: dict[str, Any]
    ) -> None:
        """辞書で渡した空白のみのタグ名も拒否される"""
        with pytest.raises(ValidationError):
            await post_repository.update_post(db_session, test_post["id"], {"tags": ["#ok", "  "]})

        post = await post_repository.get_post_by_id(db_session, test_post["id"])
        assert _tag_names(post) == ["#intro"]

    @pytest.mark.asyncio
    async def test_update_post_failure_rolls_back_all_changes(
        self, db_session: AsyncSession, test_post: dict[str, Any], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """途中で失敗した場合、フィールド更新もタグ変更も残らない"""

        async def failing_link_tags(*args: Any, **kwargs: Any) -> None:
            raise RuntimeError("link failed")

        monkeypatch.setattr(post_repository.post_tags, "link_tags", failing_link_tags)

        with pytest.raises(RuntimeError):
            await post_repository.update_post(db_session, test_post["id"], {"title": "changed", "tags": ["#other"]})

        monkeypatch.undo()

        post = await post_repository.get_post_by_id(db_session, test_post["id"])
        assert post.title == "Hello"
        assert _tag_names(post) == ["#intro"]
