"""スキーマパッケージ

Pydanticスキーマを提供
"""

# Post関連スキーマ
from postboard.schemas.post import (
    PostCreate,
    PostResponse,
    PostUpdate,
)

# Tag関連スキーマ
from postboard.schemas.tag import TagResponse

# User関連スキーマ
from postboard.schemas.user import (
    UserAuthInfo,
    UserCreate,
    UserDetailResponse,
    UserResponse,
    UserUpdate,
)

# 前方参照（UserDetailResponse.posts -> PostResponse）を解決
UserDetailResponse.model_rebuild()

__all__ = [
    # Post関連
    "PostCreate",
    "PostUpdate",
    "PostResponse",
    # Tag関連
    "TagResponse",
    # User関連
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "UserAuthInfo",
    "UserDetailResponse",
]
