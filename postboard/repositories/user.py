"""ユーザーリポジトリ

ユーザーデータアクセス層の抽象化
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.core.constants import UserConstants
from postboard.models.user import User
from postboard.schemas.user import UserAuthInfo, UserCreate, UserDetailResponse, UserResponse, UserUpdate
from postboard.utils.db_helpers import build_insert_ignore, extract_update_fields, map_update_columns
from postboard.utils.error_handler import handle_db_operation

# 公開用の射影（パスワードを含まない）
_PUBLIC_COLUMNS = (User.id, User.username, User.name, User.location)

# 部分更新を許可するカラム
_UPDATABLE_COLUMNS = {field: getattr(User, field) for field in UserConstants.UPDATABLE_FIELDS}


def _to_auth_info(row: Any) -> UserAuthInfo:
    return UserAuthInfo(
        id=row.id,
        username=row.username,
        password=row.password,
        name=row.name,
        location=row.location,
    )


class UserRepositoryInterface(ABC):
    """ユーザーリポジトリのインターフェース"""

    @abstractmethod
    async def list_users(self, db: AsyncSession) -> list[UserResponse]:
        """全ユーザーを取得"""
        pass

    @abstractmethod
    async def create_user(self, db: AsyncSession, user_in: UserCreate) -> UserAuthInfo | None:
        """ユーザーを登録"""
        pass

    @abstractmethod
    async def update_user(
        self, db: AsyncSession, user_id: int, fields: UserUpdate | Mapping[str, Any]
    ) -> UserAuthInfo | None:
        """ユーザーを部分更新"""
        pass

    @abstractmethod
    async def get_user_by_id(self, db: AsyncSession, user_id: int) -> UserDetailResponse | None:
        """IDでユーザーを投稿付きで取得"""
        pass

    @abstractmethod
    async def get_user_by_username(self, db: AsyncSession, username: str) -> UserAuthInfo | None:
        """認証情報込みでユーザーを取得（認証専用）"""
        pass


class UserRepository(UserRepositoryInterface):
    """ユーザーリポジトリの実装"""

    @handle_db_operation("ユーザー一覧取得")
    async def list_users(self, db: AsyncSession) -> list[UserResponse]:
        """全ユーザーを取得（ID昇順、パスワードは含まない）"""
        result = await db.execute(select(*_PUBLIC_COLUMNS).order_by(User.id))
        return [UserResponse.model_validate(dict(row._mapping)) for row in result.all()]

    @handle_db_operation("ユーザー登録")
    async def create_user(self, db: AsyncSession, user_in: UserCreate) -> UserAuthInfo | None:
        """ユーザーを登録

        INSERT ... ON CONFLICT (username) DO NOTHING RETURNING *

        Args:
            db: データベースセッション
            user_in: 登録データ

        Returns:
            作成されたユーザー（パスワード含む）、ユーザー名が既に使われている場合はNone
        """
        stmt = build_insert_ignore(db, User, user_in.model_dump(), ["username"]).returning(*User.__table__.c)
        result = await db.execute(stmt)
        row = result.first()
        await db.commit()

        if row is None:
            return None

        return _to_auth_info(row)

    @handle_db_operation("ユーザー更新")
    async def update_user(
        self, db: AsyncSession, user_id: int, fields: UserUpdate | Mapping[str, Any]
    ) -> UserAuthInfo | None:
        """ユーザーを部分更新

        Args:
            db: データベースセッション
            user_id: 更新対象のユーザーID
            fields: 更新するフィールド（許可リスト内のもののみ）

        Returns:
            更新後のユーザー（パスワード含む）
            更新フィールドが空の場合、またはユーザーが存在しない場合はNone

        Raises:
            InvalidFieldError: 許可されていないフィールドが含まれる場合
            ValidationError: 値がUserUpdateの制約を満たさない場合
        """
        update_data = extract_update_fields(fields, UserUpdate, "user")
        if not update_data:
            return None

        values = map_update_columns("user", update_data, _UPDATABLE_COLUMNS)

        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(values)
            .returning(*User.__table__.c)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        row = result.first()
        await db.commit()

        if row is None:
            return None

        return _to_auth_info(row)

    @handle_db_operation("ユーザー取得")
    async def get_user_by_id(self, db: AsyncSession, user_id: int) -> UserDetailResponse | None:
        """IDでユーザーを投稿付きで取得

        Returns:
            ユーザー情報（パスワードを除く）と投稿一覧、存在しない場合はNone
        """
        from postboard.repositories.post import post_repository

        result = await db.execute(select(*_PUBLIC_COLUMNS).where(User.id == user_id))
        row = result.first()

        if row is None:
            return None

        posts = await post_repository.get_posts_by_user(db, user_id)

        return UserDetailResponse(**dict(row._mapping), posts=posts)

    @handle_db_operation("認証用ユーザー取得")
    async def get_user_by_username(self, db: AsyncSession, username: str) -> UserAuthInfo | None:
        """認証情報込みでユーザーを取得（認証専用）

        資格情報の照合のため、保存されたパスワードを含めて返す
        """
        result = await db.execute(select(User.__table__).where(User.username == username))
        row = result.first()

        if row is None:
            return None

        return _to_auth_info(row)

    async def get_summaries_by_ids(self, db: AsyncSession, user_ids: Iterable[int]) -> dict[int, UserResponse]:
        """複数ユーザーの公開情報を一括取得

        投稿の集約で著者情報を付与するために使用
        """
        unique_ids = list(dict.fromkeys(user_ids))
        if not unique_ids:
            return {}

        result = await db.execute(select(*_PUBLIC_COLUMNS).where(User.id.in_(unique_ids)))
        return {row.id: UserResponse.model_validate(dict(row._mapping)) for row in result.all()}


# シングルトンインスタンス
user_repository = UserRepository()
