"""投稿関連のPydanticスキーマ

投稿の作成、更新、集約レスポンスのスキーマを提供
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from postboard.core.constants import ErrorMessages, PostConstants
from postboard.schemas.tag import TagResponse, validate_tag_name
from postboard.schemas.user import UserResponse


def _validate_title(v: str) -> str:
    v = v.strip()

    if len(v) < PostConstants.TITLE_MIN_LENGTH:
        raise ValueError(ErrorMessages.POST_TITLE_REQUIRED)

    if len(v) > PostConstants.TITLE_MAX_LENGTH:
        raise ValueError(ErrorMessages.POST_TITLE_TOO_LONG)

    return v


class PostCreate(BaseModel):
    """投稿作成リクエストスキーマ"""

    author_id: int = Field(..., description="著者のユーザーID", examples=[1])

    title: str = Field(
        ...,
        min_length=PostConstants.TITLE_MIN_LENGTH,
        max_length=PostConstants.TITLE_MAX_LENGTH,
        description="タイトル",
        examples=["Hello"],
    )

    content: str = Field(default="", description="本文", examples=["World"])

    tags: list[str] = Field(default_factory=list, description="タグ名のリスト", examples=[["#intro"]])

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _validate_title(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        return [validate_tag_name(name) for name in v]


class PostUpdate(BaseModel):
    """投稿部分更新リクエストスキーマ

    tags を指定した場合は投稿のタグ集合をその内容に置き換える
    - 未指定: タグは変更しない
    - 空リスト: すべてのタグを外す
    """

    title: str | None = Field(
        None, min_length=PostConstants.TITLE_MIN_LENGTH, max_length=PostConstants.TITLE_MAX_LENGTH, description="タイトル"
    )

    content: str | None = Field(None, description="本文")

    tags: list[str] | None = Field(None, description="置き換え後のタグ名のリスト")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        if v is None:
            return None

        return _validate_title(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return None

        return [validate_tag_name(name) for name in v]


class PostResponse(BaseModel):
    """投稿集約レスポンススキーマ

    投稿本体にタグ一覧と著者情報を合成したもの（author_id とパスワードは含まない）
    """

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="投稿ID")
    title: str = Field(..., description="タイトル")
    content: str = Field(..., description="本文")
    tags: list[TagResponse] = Field(default_factory=list, description="タグ一覧")
    author: UserResponse = Field(..., description="著者情報")
