"""
Agent 异常定义
"""


class PollError(Exception):
    """单个端点轮询失败"""


class StatusNotOKError(PollError):
    """端点返回非 2xx 状态码"""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"non-2xx HTTP status code: {status_code}")


class PathNotFoundError(PollError):
    """JSON 路径不存在，或指向的不是标量"""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"JSON path not found in response: {path}")


class ReportError(Exception):
    """上报失败（网络错误或服务端拒绝）"""
