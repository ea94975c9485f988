"""ユーザー関連のPydanticスキーマ

ユーザー登録・更新のリクエストスキーマと、公開用・認証用のレスポンススキーマを提供
"""

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_validator

from postboard.core.constants import ErrorMessages, UserConstants

if TYPE_CHECKING:
    from postboard.schemas.post import PostResponse


def _validate_username(v: str) -> str:
    if not v.strip():
        raise ValueError(ErrorMessages.USERNAME_REQUIRED)

    if len(v) > UserConstants.USERNAME_MAX_LENGTH:
        raise ValueError(ErrorMessages.USERNAME_TOO_LONG)

    return v


class UserCreate(BaseModel):
    """ユーザー登録リクエストスキーマ"""

    username: str = Field(
        ...,
        min_length=UserConstants.USERNAME_MIN_LENGTH,
        max_length=UserConstants.USERNAME_MAX_LENGTH,
        description="ユーザー名（一意）",
        examples=["alice"],
    )

    password: str = Field(
        ..., max_length=UserConstants.PASSWORD_MAX_LENGTH, description="認証情報（そのまま保存）", examples=["pw"]
    )

    name: str | None = Field(None, max_length=UserConstants.NAME_MAX_LENGTH, description="表示名", examples=["Alice"])

    location: str | None = Field(
        None, max_length=UserConstants.LOCATION_MAX_LENGTH, description="所在地", examples=["NY"]
    )

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        return _validate_username(v)


class UserUpdate(BaseModel):
    """ユーザー部分更新リクエストスキーマ

    明示的に指定されたフィールドのみ更新対象（model_dump(exclude_unset=True)）
    """

    username: str | None = Field(
        None,
        min_length=UserConstants.USERNAME_MIN_LENGTH,
        max_length=UserConstants.USERNAME_MAX_LENGTH,
        description="ユーザー名",
    )

    password: str | None = Field(None, max_length=UserConstants.PASSWORD_MAX_LENGTH, description="認証情報")

    name: str | None = Field(None, max_length=UserConstants.NAME_MAX_LENGTH, description="表示名")

    location: str | None = Field(None, max_length=UserConstants.LOCATION_MAX_LENGTH, description="所在地")

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str | None) -> str | None:
        if v is None:
            return v

        return _validate_username(v)


class UserResponse(BaseModel):
    """ユーザー公開情報レスポンススキーマ

    投稿の著者情報などで使用（パスワードは含まない）
    """

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="ユーザーID")
    username: str = Field(..., description="ユーザー名")
    name: str | None = Field(None, description="表示名")
    location: str | None = Field(None, description="所在地")


class UserAuthInfo(UserResponse):
    """認証情報込みのユーザースキーマ（認証・登録フロー専用）

    資格情報の照合やトークン発行のため、保存されたパスワードを含む
    """

    password: str = Field(..., description="保存された認証情報")


class UserDetailResponse(UserResponse):
    """ユーザー詳細レスポンススキーマ（投稿一覧付き）"""

    posts: list["PostResponse"] = Field(default_factory=list, description="ユーザーの投稿一覧")
