"""
JSON 取值器

按点分隔路径（如 "data.status.erd_nonce"）从 JSON 文档中取出标量，并转换为字符串。
只支持逐层访问对象字段，不支持数组下标。
"""

from decimal import Decimal
from typing import Any

from metric_agent.errors import PathNotFoundError


def render_scalar(value: Any) -> str:
    """
    将 JSON 标量转换为字符串

    - 字符串原样返回
    - 布尔值返回 "true" / "false"
    - 整数原样返回全部位数
    - 浮点数取最短表示，不用科学计数法，去掉多余的小数零（1.0 -> "1"，1e5 -> "100000"）
    """
    if isinstance(value, str):
        return value
    # bool 是 int 的子类，必须先判断
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return format(Decimal(repr(value)).normalize(), "f")
    raise TypeError(f"not a scalar: {type(value).__name__}")


def extract_value(document: Any, path: str) -> str:
    """
    从 JSON 文档中提取路径指向的标量

    Args:
        document: 已解析的 JSON 文档
        path: 点分隔路径

    Returns:
        标量的字符串形式

    Raises:
        PathNotFoundError: 路径不存在、中间节点不是对象、或终点不是标量（含 null）
    """
    if not path:
        raise PathNotFoundError(path)

    node = document
    for key in path.split("."):
        if not isinstance(node, dict) or key not in node:
            raise PathNotFoundError(path)
        node = node[key]

    if node is None or isinstance(node, (dict, list)):
        raise PathNotFoundError(path)

    return render_scalar(node)
