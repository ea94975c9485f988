"""リポジトリパッケージ

データアクセス層の抽象化を提供
すべてのメソッドは呼び出し元から渡されたセッションで動作する
"""

from postboard.repositories.post import PostRepository, PostRepositoryInterface, post_repository
from postboard.repositories.post_tag import PostTagRepository, PostTagRepositoryInterface, post_tag_repository
from postboard.repositories.tag import TagRepository, TagRepositoryInterface, tag_repository
from postboard.repositories.user import UserRepository, UserRepositoryInterface, user_repository

__all__ = [
    # Interfaces
    "UserRepositoryInterface",
    "PostRepositoryInterface",
    "TagRepositoryInterface",
    "PostTagRepositoryInterface",
    # Implementations
    "UserRepository",
    "PostRepository",
    "TagRepository",
    "PostTagRepository",
    # Instances
    "user_repository",
    "post_repository",
    "tag_repository",
    "post_tag_repository",
]
