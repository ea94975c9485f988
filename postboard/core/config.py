"""アプリケーション設定管理モジュール

Pydantic V2 BaseSettingsを使用した設定システムを提供
"""

import os
import secrets
from typing import Any, ClassVar
from urllib.parse import quote_plus

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from postboard.core.constants import SecurityConstants


class Settings(BaseSettings):
    """アプリケーション設定

    Pydantic V2を使用して環境変数から設定を読み込む（設定は自動的に検証・型チェックされる）
    """

    # =============================================================================
    # Pydantic V2 設定
    # =============================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        validate_assignment=True,
    )

    # =============================================================================
    # アプリケーション設定
    # =============================================================================
    PROJECT_NAME: str = "PostBoard"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # =============================================================================
    # データベース設定
    # =============================================================================
    # 完全な接続URL（指定時はDB_*より優先）
    DATABASE_URL: str | None = Field(default=None)
    DB_USER: str = Field(default="postgres")
    DB_PASSWORD: str = Field(default="")
    DB_NAME: str = Field(default="postboard-dev")
    DB_HOST: str = Field(default="localhost")
    DB_PORT: int = Field(default=5432)
    DB_ECHO: bool = Field(default=False)

    # =============================================================================
    # JWT設定
    # =============================================================================
    JWT_SECRET_KEY: str = Field(default="", validate_default=True)
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(
        default=SecurityConstants.DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES, ge=0
    )

    # =============================================================================
    # ログレベル設定
    # =============================================================================
    VALID_LOG_LEVELS: ClassVar[list[str]] = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

    # =============================================================================
    # バリデーター（Pydantic V2）
    # =============================================================================

    @field_validator("JWT_SECRET_KEY", mode="before")
    @classmethod
    def validate_jwt_secret_key(cls, v: str | None) -> str:
        if not v or len(v) < SecurityConstants.MIN_JWT_SECRET_LENGTH:
            # 本番環境チェック
            env = os.getenv("ENVIRONMENT", "development").lower()
            if env == "production":
                raise ValueError(
                    f"JWT_SECRET_KEY must be at least {SecurityConstants.MIN_JWT_SECRET_LENGTH} "
                    "characters in production. Generate one using: "
                    'python -c "import secrets; print(secrets.token_urlsafe(32))"'
                )
            # 開発環境ではキーを自動生成
            return secrets.token_urlsafe(SecurityConstants.MIN_JWT_SECRET_LENGTH)
        return v

    @field_validator("JWT_ALGORITHM")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        if v not in SecurityConstants.ALLOWED_JWT_ALGORITHMS:
            raise ValueError(f"JWT_ALGORITHM must be one of: {', '.join(SecurityConstants.ALLOWED_JWT_ALGORITHMS)}")
        return v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        if v.upper() not in cls.VALID_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of: {', '.join(cls.VALID_LOG_LEVELS)}")
        return v.upper()

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def normalize_database_url(cls, v: str | None) -> str | None:
        """postgres:// 形式のURLをasyncpg用のドライバ指定付きURLに変換"""
        if not v:
            return None

        for prefix in ("postgres://", "postgresql://"):
            if v.startswith(prefix):
                return "postgresql+asyncpg://" + v[len(prefix) :]

        return v

    # =============================================================================
    # 計算プロパティ（Pydantic V2）
    # =============================================================================

    @computed_field  # type: ignore[prop-decorator]
    @property
    def database_url_async(self) -> str:
        """非同期ドライバ用の接続URLを生成"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        encoded_password = quote_plus(self.DB_PASSWORD)
        credentials = f"{self.DB_USER}:{encoded_password}" if self.DB_PASSWORD else self.DB_USER
        return f"postgresql+asyncpg://{credentials}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """本番環境で実行中かチェック"""
        return self.ENVIRONMENT.lower() == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_testing(self) -> bool:
        """テスト環境で実行中かチェック"""
        return self.ENVIRONMENT.lower() == "testing"

    # =============================================================================
    # ヘルパーメソッド
    # =============================================================================

    def get_jwt_config(self) -> dict[str, Any]:
        """環境変数から読み込んだJWT設定を返す"""
        return {
            "secret_key": self.JWT_SECRET_KEY,
            "algorithm": self.JWT_ALGORITHM,
            "access_token_expire_minutes": self.JWT_ACCESS_TOKEN_EXPIRE_MINUTES,
        }

    # =============================================================================
    # セキュリティ・検証メソッド
    # =============================================================================

    def validate_production_security(self) -> None:
        """本番環境のセキュリティ設定を検証"""
        if not self.is_production:
            return

        issues = []

        if len(self.JWT_SECRET_KEY) < SecurityConstants.MIN_JWT_SECRET_LENGTH:
            issues.append(f"JWT_SECRET_KEY must be at least {SecurityConstants.MIN_JWT_SECRET_LENGTH} characters")

        if self.DEBUG:
            issues.append("DEBUG should be False in production")

        if self.DB_ECHO:
            issues.append("DB_ECHO should be False in production")

        if issues:
            raise ValueError(f"Production security issues: {'; '.join(issues)}")


# =============================================================================
# グローバル設定インスタンス（シングルトン）
# =============================================================================

_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """シングルトンパターンで設定インスタンスを取得"""
    global _settings_instance

    if _settings_instance is None:
        _settings_instance = Settings()
        _settings_instance.validate_production_security()

    return _settings_instance


# グローバル設定インスタンス（アプリケーション全体で共有）
settings = get_settings()


# =============================================================================
# テスト用ユーティリティ
# =============================================================================


def reset_settings() -> None:
    """シングルトンインスタンスをリセット（主にテスト用）"""
    global _settings_instance
    _settings_instance = None


def create_test_settings(**overrides: Any) -> Settings:
    """テスト用設定でシングルトンを一時的に置き換えます

    注意: 呼び出し側でreset_settings()を呼ぶこと

    Args:
        **overrides: テスト用に上書きする設定

    Returns:
        テスト値を持つSettingsインスタンス
    """
    global _settings_instance

    test_defaults: dict[str, Any] = {
        "ENVIRONMENT": "testing",
        "DEBUG": True,
        "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
        "JWT_SECRET_KEY": "test-secret-key-at-least-32-characters-long",
        "LOG_LEVEL": "WARNING",
    }
    test_defaults.update(overrides)

    _settings_instance = Settings(**test_defaults)
    return _settings_instance
