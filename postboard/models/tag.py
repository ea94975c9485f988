"""タグモデル

投稿間で共有されるタグを提供
"""

from typing import TYPE_CHECKING

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from postboard.core.constants import ErrorMessages, TagConstants
from postboard.models.base import Base

# 循環インポート回避のための型チェック時のみインポート
if TYPE_CHECKING:
    from postboard.models.post_tag import PostTag  # noqa: F401


class Tag(Base):
    """タグモデル

    同じ名前のタグは1行のみ（初回利用時に作成され、全投稿で共有）
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, comment="プライマリキー")

    name: Mapped[str] = mapped_column(
        String(TagConstants.NAME_MAX_LENGTH), unique=True, nullable=False, comment="タグ名"
    )

    post_tags: Mapped[list["PostTag"]] = relationship(
        "PostTag", back_populates="tag", cascade="all, delete-orphan", lazy="select", passive_deletes=True
    )

    @validates("name")
    def validate_name(self, key: str, name: str) -> str:  # noqa: ARG002
        if not name:
            raise ValueError(ErrorMessages.TAG_NAME_REQUIRED)

        if len(name) > TagConstants.NAME_MAX_LENGTH:
            raise ValueError(ErrorMessages.TAG_NAME_TOO_LONG)

        return name

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name={self.name})>"
