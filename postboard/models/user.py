"""ユーザーモデル

投稿の著者となるユーザー情報を提供
"""

from typing import TYPE_CHECKING

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from postboard.core.constants import ErrorMessages, UserConstants
from postboard.models.base import Base

# 循環インポート回避のための型チェック時のみインポート
if TYPE_CHECKING:
    from postboard.models.post import Post  # noqa: F401


class User(Base):
    """ユーザーモデル

    ユーザー名は一意、パスワードは不透明な値としてそのまま保存する
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, comment="プライマリキー")

    username: Mapped[str] = mapped_column(
        String(UserConstants.USERNAME_MAX_LENGTH), unique=True, nullable=False, comment="ユーザー名（ログインID）"
    )

    password: Mapped[str] = mapped_column(
        String(UserConstants.PASSWORD_MAX_LENGTH), nullable=False, comment="認証情報（呼び出し側には返さない）"
    )

    name: Mapped[str | None] = mapped_column(String(UserConstants.NAME_MAX_LENGTH), nullable=True, comment="表示名")

    location: Mapped[str | None] = mapped_column(
        String(UserConstants.LOCATION_MAX_LENGTH), nullable=True, comment="所在地"
    )

    # リレーション定義（遅延読み込み）
    posts: Mapped[list["Post"]] = relationship(
        "Post", back_populates="author", cascade="all, delete-orphan", lazy="select", passive_deletes=True
    )

    @validates("username")
    def validate_username(self, key: str, username: str) -> str:  # noqa: ARG002
        if not username or not username.strip():
            raise ValueError(ErrorMessages.USERNAME_REQUIRED)

        if len(username) > UserConstants.USERNAME_MAX_LENGTH:
            raise ValueError(ErrorMessages.USERNAME_TOO_LONG)

        return username

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"
