"""
前端登录 API
"""

import hmac
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ...auth import TokenManager
from ...models import LoginRequest, LoginResponse
from ..dependencies import get_token_manager, json_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _matches(given: str, expected: str) -> bool:
    return hmac.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request,
    credentials: LoginRequest = Depends(json_body(LoginRequest)),
    tokens: TokenManager = Depends(get_token_manager)
):
    """用户名密码换取 24 小时有效的 Token"""
    secrets = request.app.state.secrets

    username_ok = _matches(credentials.username, secrets.auth_username)
    password_ok = _matches(credentials.password, secrets.auth_password)
    if not (username_ok and password_ok):
        logger.warning(f"Failed login attempt for user '{credentials.username}'")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid credentials"
        )

    return LoginResponse(token=tokens.issue(credentials.username))
