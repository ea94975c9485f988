"""投稿-タグ中間テーブルモデル

投稿とタグの多対多関係を管理
"""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from postboard.models.base import Base

# 循環インポート回避のための型チェック時
if TYPE_CHECKING:
    from postboard.models.post import Post  # noqa: F401
    from postboard.models.tag import Tag  # noqa: F401


class PostTag(Base):
    """投稿-タグ中間テーブルモデル

    (post_id, tag_id) の組がそのまま主キー（重複関連は作成されない）
    """

    post_id: Mapped[int] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True, comment="関連付ける投稿ID"
    )

    tag_id: Mapped[int] = mapped_column(
        ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True, comment="関連付けるタグID"
    )

    # リレーション定義（Repository パターンで明示的にクエリするため、デフォルトは遅延読み込み）
    post: Mapped["Post"] = relationship("Post", back_populates="post_tags", lazy="select")

    tag: Mapped["Tag"] = relationship("Tag", back_populates="post_tags", lazy="select")

    __table_args__ = (Index("ix_post_tags_tag_id", "tag_id"),)

    @classmethod
    def conflict_columns(cls) -> list[str]:
        """重複判定に使用するカラム（ON CONFLICT対象）"""
        return ["post_id", "tag_id"]

    def __repr__(self) -> str:
        return f"<PostTag(post_id={self.post_id}, tag_id={self.tag_id})>"
