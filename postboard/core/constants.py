"""アプリケーション定数管理

カラム長、更新可能フィールド、エラーメッセージを一元管理
"""

# =============================================================================
# ユーザー関連定数
# =============================================================================


class UserConstants:
    """ユーザー関連の定数"""

    # ユーザー名設定
    USERNAME_MIN_LENGTH = 1
    USERNAME_MAX_LENGTH = 255

    # パスワード設定（不透明な値としてそのまま保存）
    PASSWORD_MAX_LENGTH = 255

    # プロフィール設定
    NAME_MAX_LENGTH = 255
    LOCATION_MAX_LENGTH = 255

    # 部分更新で変更を許可するフィールド
    UPDATABLE_FIELDS = ("username", "password", "name", "location")


# =============================================================================
# 投稿関連定数
# =============================================================================


class PostConstants:
    """投稿関連の定数"""

    # タイトル設定
    TITLE_MIN_LENGTH = 1
    TITLE_MAX_LENGTH = 255

    # 部分更新で変更を許可するフィールド（tagsは別処理）
    UPDATABLE_FIELDS = ("title", "content")

    # タグ集合の置き換えを指示するキー
    TAGS_FIELD = "tags"


# =============================================================================
# タグ関連定数
# =============================================================================


class TagConstants:
    """タグ関連の定数"""

    # タグ名設定
    NAME_MIN_LENGTH = 1
    NAME_MAX_LENGTH = 255


# =============================================================================
# セキュリティ関連定数
# =============================================================================


class SecurityConstants:
    """セキュリティ関連の定数"""

    # JWT設定
    MIN_JWT_SECRET_LENGTH = 32
    ALLOWED_JWT_ALGORITHMS = ["HS256", "HS384", "HS512"]

    # トークン有効期限（0で無期限）
    DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES = 0


# =============================================================================
# エラーメッセージ定数
# =============================================================================


class ErrorMessages:
    """エラーメッセージの定数"""

    # ユーザー関連
    USERNAME_REQUIRED = "ユーザー名は必須です"
    USERNAME_TOO_LONG = f"ユーザー名は{UserConstants.USERNAME_MAX_LENGTH}文字以内で入力してください"

    # 投稿関連
    POST_NOT_FOUND = "指定されたIDの投稿が見つかりません"
    POST_TITLE_REQUIRED = "投稿タイトルは必須です"
    POST_TITLE_TOO_LONG = f"投稿タイトルは{PostConstants.TITLE_MAX_LENGTH}文字以内で入力してください"

    # タグ関連
    TAG_NAME_REQUIRED = "タグ名は必須です"
    TAG_NAME_TOO_LONG = f"タグ名は{TagConstants.NAME_MAX_LENGTH}文字以内で入力してください"
    TAG_NAMES_NOT_LIST = "タグ名はリストで指定してください"

    # 更新フィールド関連
    INVALID_UPDATE_FIELD = "更新できないフィールドが指定されました"
