"""SQLAlchemyベースモデル

すべてのモデルの基底クラスを提供
テーブル名、制約ネーミング規則を統一
"""

import re

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, declared_attr

# 制約命名規則の統一
metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",  # インデックス
        "uq": "uq_%(table_name)s_%(column_0_name)s",  # ユニーク制約
        "ck": "ck_%(table_name)s_%(constraint_name)s",  # チェック制約
        "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",  # 外部キー
        "pk": "pk_%(table_name)s",  # プライマリキー
    }
)


class Base(DeclarativeBase):
    """SQLAlchemy 2.x準拠のベースクラス

    全てのモデルはこのクラスを継承する
    - テーブル名自動生成
    - 主キーは各モデルで定義（中間テーブルは複合主キー）
    """

    metadata = metadata

    @declared_attr.directive
    def __tablename__(cls) -> str:
        """テーブル名を自動生成

        例: User -> users, PostTag -> post_tags
        """
        name = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", cls.__name__)
        return re.sub("([a-z0-9])([A-Z])", r"\1_\2", name).lower() + "s"
