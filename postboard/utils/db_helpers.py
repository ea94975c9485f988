"""データベース操作関連ユーティリティ

方言に応じた競合無視INSERTの構築、部分更新フィールドの検証など、
リポジトリ共通のクエリ構築処理を提供
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import BaseModel
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.sql.dml import Insert

from postboard.core.database import DatabaseConfigurationError
from postboard.utils.error_handler import InvalidFieldError

# ON CONFLICT DO NOTHING をサポートする方言ごとのINSERT構築関数
_CONFLICT_TOLERANT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def get_dialect_name(db: AsyncSession) -> str:
    """セッションが接続している方言名を取得"""
    return db.get_bind().dialect.name


def build_insert_ignore(
    db: AsyncSession,
    model_class: type[Any],
    values: Mapping[str, Any] | Sequence[Mapping[str, Any]],
    conflict_columns: Sequence[str],
) -> Insert:
    """一意制約違反を無視するINSERT文を構築

    INSERT ... ON CONFLICT (conflict_columns) DO NOTHING

    Args:
        db: データベースセッション（方言判定用）
        model_class: 挿入先のモデルクラス
        values: 1行分の値、または複数行分の値リスト
        conflict_columns: 競合判定に使用する一意カラム

    Returns:
        INSERT文

    Raises:
        DatabaseConfigurationError: 未対応の方言の場合
    """
    dialect_name = get_dialect_name(db)
    insert_factory = _CONFLICT_TOLERANT_INSERTS.get(dialect_name)
    if insert_factory is None:
        raise DatabaseConfigurationError(f"競合無視INSERTに未対応のデータベースです: {dialect_name}")

    stmt = insert_factory(model_class).values(values if isinstance(values, Mapping) else list(values))
    return stmt.on_conflict_do_nothing(index_elements=list(conflict_columns))


def unique_in_order(values: Iterable[str]) -> list[str]:
    """重複を除去（最初の出現順を維持）"""
    return list(dict.fromkeys(values))


def extract_update_fields(
    fields: BaseModel | Mapping[str, Any] | None,
    schema: type[BaseModel] | None = None,
    entity: str = "",
) -> dict[str, Any]:
    """更新データを辞書に変換

    Pydanticモデルの場合は明示的に指定されたフィールドのみを対象とする
    （「未指定」と「空」を区別するため）
    schemaを指定した場合、辞書の入力もそのスキーマで検証してから変換する

    Args:
        fields: 更新データ
        schema: 辞書の入力を検証するスキーマ
        entity: エンティティ名（エラーメッセージ用）

    Raises:
        InvalidFieldError: スキーマにないフィールドが含まれる場合
        ValidationError: 値がスキーマの制約を満たさない場合
    """
    if fields is None:
        return {}

    if schema is not None and not isinstance(fields, BaseModel):
        invalid_fields = sorted(str(field) for field in fields if field not in schema.model_fields)
        if invalid_fields:
            raise InvalidFieldError(entity or schema.__name__, invalid_fields)

        fields = schema.model_validate(dict(fields))

    if isinstance(fields, BaseModel):
        return fields.model_dump(exclude_unset=True)

    return dict(fields)


def map_update_columns(
    entity: str,
    fields: Mapping[str, Any],
    allowed_columns: Mapping[str, InstrumentedAttribute[Any]],
) -> dict[InstrumentedAttribute[Any], Any]:
    """更新フィールドを許可リストに基づいてカラムへ対応付け

    文を構築する前に検証し、許可されていないフィールド名は識別子として使用しない

    Args:
        entity: エンティティ名（エラーメッセージ用）
        fields: 更新フィールド名と値
        allowed_columns: 許可フィールド名からカラム属性への対応表

    Returns:
        カラム属性をキーとする更新値の辞書

    Raises:
        InvalidFieldError: 許可されていないフィールドが含まれる場合
    """
    invalid_fields = sorted(field for field in fields if field not in allowed_columns)
    if invalid_fields:
        raise InvalidFieldError(entity, invalid_fields)

    return {allowed_columns[field]: value for field, value in fields.items()}
