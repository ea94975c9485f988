"""投稿モデル

ユーザーが作成する投稿を提供
"""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from postboard.core.constants import ErrorMessages, PostConstants
from postboard.models.base import Base

# 循環インポート回避のための型チェック時
if TYPE_CHECKING:
    from postboard.models.post_tag import PostTag  # noqa: F401
    from postboard.models.user import User  # noqa: F401


class Post(Base):
    """投稿モデル

    著者はちょうど1人のユーザー、タグは中間テーブル経由で0個以上
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, comment="プライマリキー")

    # 著者（外部キー）
    author_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True, comment="投稿の著者ID"
    )

    title: Mapped[str] = mapped_column(String(PostConstants.TITLE_MAX_LENGTH), nullable=False, comment="タイトル")

    content: Mapped[str] = mapped_column(Text, nullable=False, default="", comment="本文")

    author: Mapped["User"] = relationship("User", back_populates="posts", lazy="select")

    post_tags: Mapped[list["PostTag"]] = relationship(
        "PostTag", back_populates="post", cascade="all, delete-orphan", lazy="select", passive_deletes=True
    )

    @validates("title")
    def validate_title(self, key: str, title: str) -> str:  # noqa: ARG002
        if not title or not title.strip():
            raise ValueError(ErrorMessages.POST_TITLE_REQUIRED)

        if len(title) > PostConstants.TITLE_MAX_LENGTH:
            raise ValueError(ErrorMessages.POST_TITLE_TOO_LONG)

        return title

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, title={self.title})>"
