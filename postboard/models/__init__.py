"""モデルパッケージ

すべてのSQLAlchemyモデルをインポートするためのエントリーポイント
"""

from postboard.models.base import Base
from postboard.models.post import Post
from postboard.models.post_tag import PostTag
from postboard.models.tag import Tag
from postboard.models.user import User

__all__ = [
    "Base",
    "User",
    "Post",
    "Tag",
    "PostTag",
]
