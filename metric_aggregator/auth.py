"""
前端登录 Token

HS256 签名的三段式 Token（header.payload.signature），有效期 24 小时。
签名密钥在每个 TokenManager 实例创建时由 Service Key 加随机盐派生，
进程重启后之前签发的 Token 全部失效。
"""

import hashlib
import hmac
import os
import time
from typing import Any, Dict, Optional

import jwt

from .errors import TokenError

TOKEN_ALGORITHM = "HS256"
TOKEN_LIFETIME_SECONDS = 24 * 3600


def derive_secret(service_key: str, salt: Optional[bytes] = None) -> bytes:
    """HMAC-SHA256(service_key, salt)，salt 默认 16 字节随机数"""
    if salt is None:
        salt = os.urandom(16)
    return hmac.new(service_key.encode("utf-8"), salt, hashlib.sha256).digest()


class TokenManager:
    """签发与校验前端 Token"""

    def __init__(self, service_key: str, lifetime: int = TOKEN_LIFETIME_SECONDS):
        self._secret = derive_secret(service_key)
        self.lifetime = lifetime

    def issue(self, subject: str, now: Optional[int] = None) -> str:
        """签发 Token"""
        if now is None:
            now = int(time.time())
        claims = {"sub": subject, "exp": now + self.lifetime}
        return jwt.encode(claims, self._secret, algorithm=TOKEN_ALGORITHM)

    def verify(self, token: str) -> Dict[str, Any]:
        """
        校验 Token

        Returns:
            Token 中的 claims

        Raises:
            TokenError: 结构不是三段、签名不匹配或已过期
        """
        if token.count(".") != 2:
            raise TokenError("invalid token")

        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[TOKEN_ALGORITHM],
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenError("token expired") from e
        except jwt.PyJWTError as e:
            raise TokenError("invalid token") from e
