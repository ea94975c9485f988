"""トークン管理モジュール

ユーザー情報を署名付きトークン（JWT）に変換・検証する
データベースには一切アクセスしない
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from postboard.core.config import Settings, get_settings
from postboard.schemas.user import UserResponse

logger = logging.getLogger(__name__)


def encode_data(data: dict[str, Any], config: Settings | None = None) -> str:
    """データを署名付きトークンにエンコード

    発行日時（iat）を付与し、有効期限が設定されている場合は exp も付与する

    Args:
        data: トークンに含めるペイロード
        config: 使用する設定（未指定の場合はアプリケーション設定）

    Returns:
        エンコードされたJWT文字列

    Raises:
        RuntimeError: エンコードに失敗した場合
    """
    config = config or get_settings()
    jwt_config = config.get_jwt_config()

    now = datetime.now(UTC)
    payload = {**data, "iat": now}

    expire_minutes = jwt_config["access_token_expire_minutes"]
    if expire_minutes > 0:
        payload["exp"] = now + timedelta(minutes=expire_minutes)

    try:
        return jwt.encode(payload, jwt_config["secret_key"], algorithm=jwt_config["algorithm"])
    except Exception as e:
        logger.error(f"トークン生成エラー: {e}")
        raise RuntimeError(f"JWTトークン生成に失敗しました: {e}") from e


def decode_data(token: str, config: Settings | None = None) -> dict[str, Any]:
    """署名付きトークンを検証してデコード

    Args:
        token: デコード対象のJWT文字列
        config: 使用する設定（未指定の場合はアプリケーション設定）

    Returns:
        デコードされたペイロード

    Raises:
        jwt.ExpiredSignatureError: トークンの有効期限切れ
        jwt.InvalidTokenError: 署名不正など無効なトークン
    """
    config = config or get_settings()
    jwt_config = config.get_jwt_config()

    decoded: dict[str, Any] = jwt.decode(token, jwt_config["secret_key"], algorithms=[jwt_config["algorithm"]])
    return decoded


def create_user_token(user: UserResponse, config: Settings | None = None) -> str:
    """ユーザーの識別情報（id, username）からトークンを発行

    登録・ログイン成功時に使用する（パスワードは含めない）
    """
    return encode_data({"id": user.id, "username": user.username}, config)
