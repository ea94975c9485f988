"""タグ関連のPydanticスキーマ"""

from pydantic import BaseModel, ConfigDict, Field

from postboard.core.constants import ErrorMessages, TagConstants


def validate_tag_name(v: str) -> str:
    """タグ名の検証（値はそのまま保持）"""
    if len(v.strip()) < TagConstants.NAME_MIN_LENGTH:
        raise ValueError(ErrorMessages.TAG_NAME_REQUIRED)

    if len(v) > TagConstants.NAME_MAX_LENGTH:
        raise ValueError(ErrorMessages.TAG_NAME_TOO_LONG)

    return v


class TagResponse(BaseModel):
    """タグ応答スキーマ"""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="タグID")
    name: str = Field(..., description="タグ名", examples=["#intro"])
