"""ユーティリティモジュール

共通的な処理を提供するユーティリティ関数・クラス群
"""

from postboard.utils.db_helpers import (
    build_insert_ignore,
    extract_update_fields,
    get_dialect_name,
    map_update_columns,
    unique_in_order,
)
from postboard.utils.error_handler import (
    InvalidFieldError,
    NotFoundError,
    PostNotFoundError,
    get_logger,
    handle_db_operation,
    setup_logging,
)

__all__ = [
    # Database utilities
    "build_insert_ignore",
    "extract_update_fields",
    "get_dialect_name",
    "map_update_columns",
    "unique_in_order",
    # Error handling utilities
    "InvalidFieldError",
    "NotFoundError",
    "PostNotFoundError",
    "get_logger",
    "handle_db_operation",
    "setup_logging",
]
