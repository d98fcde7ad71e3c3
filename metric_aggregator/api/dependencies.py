"""
依赖注入模块

提供 FastAPI 依赖项：存储实例、Agent Key 校验、前端 Token 校验。
"""

import hmac
from typing import Any, Awaitable, Callable, Dict, Optional, Type, TypeVar

from fastapi import Header, HTTPException, Request, status
from pydantic import BaseModel, ValidationError

from ..auth import TokenManager
from ..database import MetricStore
from ..errors import TokenError

ModelT = TypeVar("ModelT", bound=BaseModel)


async def get_database(request: Request) -> MetricStore:
    """获取存储实例"""
    return request.app.state.db


async def get_token_manager(request: Request) -> TokenManager:
    """获取 Token 管理器"""
    return request.app.state.tokens


async def verify_api_key(request: Request, x_api_key: Optional[str] = Header(None)):
    """
    验证 Agent 上报 Key

    与配置的 Service Key 精确匹配，否则返回 401。
    """
    expected = request.app.state.secrets.service_key
    if not x_api_key or not hmac.compare_digest(x_api_key.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="unauthorized"
        )


async def require_token(request: Request, authorization: Optional[str] = Header(None)) -> Dict[str, Any]:
    """
    验证前端 Token

    Args:
        authorization: Authorization 头，格式为 "Bearer <token>"

    Returns:
        Token claims
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="missing token"
        )

    token = authorization[len("Bearer "):]
    tokens: TokenManager = request.app.state.tokens
    try:
        return tokens.verify(token)
    except TokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e)
        )


async def parse_body(request: Request, model: Type[ModelT]) -> ModelT:
    """
    解析并校验 JSON 请求体

    在认证依赖之后调用，保证未认证请求不会先得到 400。
    """
    body = await request.body()
    try:
        return model.model_validate_json(body)
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="invalid payload"
        )


def json_body(model: Type[ModelT]) -> Callable[[Request], Awaitable[ModelT]]:
    """
    请求体依赖

    路由级认证依赖先于参数依赖解析，因此请求体在认证通过后才校验，
    路由函数本身可以写成同步函数，交给线程池执行。
    """
    async def dependency(request: Request) -> ModelT:
        return await parse_body(request, model)

    return dependency
