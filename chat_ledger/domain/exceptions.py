"""统一业务异常模型。

所有跨模块抛出的业务级错误都继承自 BusinessError，
便于在 API 层（GraphQL resolver）做统一捕获与错误码映射。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "CONVERSATION_NOT_FOUND"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 conversation_id、provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class NotFoundError(BusinessError):
    """会话不存在。属于客户端错误，不产生任何修改。"""

    def __init__(self, conversation_id: str, code: str = "CONVERSATION_NOT_FOUND", **extra):
        super().__init__(
            code=code,
            message=f"Conversation {conversation_id!r} not found",
            http_status=404,
            conversation_id=conversation_id,
            **extra,
        )


class UpstreamError(BusinessError):
    """Completion Provider 调用失败（网络、鉴权、限流、响应格式错误）。

    不做自动重试，由调用方决定是否重试。
    """

    def __init__(self, code: str, message: str, http_status: int = 502, **extra):
        super().__init__(code=code, message=message, http_status=http_status, **extra)


class NetworkError(UpstreamError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(UpstreamError):
    """第三方 API 返回非 2xx/429 错误，或响应无法解析时抛出。"""


class RateLimitError(UpstreamError):
    """Provider 限流错误。"""

    def __init__(self, code: str = "RATE_LIMIT", message: str = "Provider rate limit", **extra):
        super().__init__(code=code, message=message, http_status=429, **extra)


class ConfigurationError(BusinessError):
    """启动配置错误（如缺少 API 密钥），进程不应开始服务。"""

    def __init__(self, code: str, message: str, **extra):
        super().__init__(code=code, message=message, http_status=500, **extra)
