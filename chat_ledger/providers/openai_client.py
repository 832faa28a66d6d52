"""OpenAI Provider 适配器。

本模块负责：

1. 接收统一的 ChatRequest。
2. 将其转换为 OpenAI 兼容的 /chat/completions 请求格式。
3. 调用 HTTP 接口并把网络/API 异常统一映射为 UpstreamError 子类。
4. 将响应 JSON 解析为统一的 ChatResult / ChatMessage 结构。

不做重试、缓存或限流，失败直接抛给上层。
"""

import httpx
from typing import Any, Optional

from chat_ledger.domain.models import (
    ChatRequest,
    ChatResult,
    ChatMessage,
    ChatChoice,
    ChatUsage,
)
from chat_ledger.domain.exceptions import ApiError, ConfigurationError, NetworkError, RateLimitError
from chat_ledger.providers.registry import OPENAI_CONFIG, ModelConfig, ProviderConfig, resolve_model


class OpenAIClient:
    """OpenAI 提供方客户端实现。

    - name: Provider 名称（供日志/调试使用）。
    - chat: 对外统一调用入口，返回 ChatResult。
    """

    def __init__(self, settings, provider_config: Optional[ProviderConfig] = None):
        # 密钥只在构造时检查一次，缺失即视为启动配置错误
        if not getattr(settings, "openai_api_key", None):
            raise ConfigurationError(code="MISSING_API_KEY", message="OPENAI_API_KEY not set")
        self._settings = settings
        self._provider_config = provider_config or OPENAI_CONFIG
        self.name = self._provider_config.name

    def chat(self, req: ChatRequest) -> ChatResult:
        """执行一次非流式对话调用。

        步骤：
        1. 读取模型配置（logical model -> provider model）。
        2. 构造 HTTP 请求 payload。
        3. 发送请求并捕获网络错误/限流/服务端错误。
        4. 使用统一的解析函数构造 ChatResult。
        """

        model_cfg = resolve_model(self._provider_config, req.model)
        payload = self._build_payload(req, model_cfg)
        base = getattr(self._settings, "openai_base_url", None) or self._provider_config.base_url
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(
                    f"{base.rstrip('/')}/chat/completions",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self._settings.openai_api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时等
            raise NetworkError(code="NETWORK_ERROR", message=str(e), provider=self.name)
        if resp.status_code == 429:
            raise RateLimitError(message="OpenAI rate limit", provider=self.name)
        if resp.status_code >= 400:
            raise ApiError(
                code="API_ERROR",
                message=resp.text,
                provider=self.name,
                upstream_status=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise ApiError(code="MALFORMED_RESPONSE", message=f"Invalid JSON body: {e}", provider=self.name)
        return self._parse_response(data, req)

    def _build_payload(self, req: ChatRequest, model_cfg: ModelConfig) -> dict:
        """将 ChatRequest 转成 OpenAI 所需的请求 JSON。"""

        return {
            "model": model_cfg.provider_model,
            "messages": [{"role": m.role, "content": m.content} for m in req.messages],
            "temperature": req.temperature if req.temperature is not None else model_cfg.default_temperature,
        }

    def _parse_response(self, data: Any, req: ChatRequest) -> ChatResult:
        """将原始响应 JSON 解析为统一的 ChatResult。

        任何结构不符（choices 不是列表、choice/message 不是对象、content 不是字符串）
        都按 MALFORMED_RESPONSE 处理，保证上层只会看到 UpstreamError。
        """

        if not isinstance(data, dict) or not isinstance(data.get("choices"), list):
            raise self._malformed("Response has no choices")
        choices: list[ChatChoice] = []
        for i, ch in enumerate(data["choices"]):
            if not isinstance(ch, dict) or not isinstance(ch.get("message"), dict):
                raise self._malformed(f"Choice {i} has no message object")
            content = ch["message"].get("content")
            if content is None:
                content = ""
            if not isinstance(content, str):
                raise self._malformed(f"Choice {i} content is not a string")
            choices.append(
                ChatChoice(
                    index=ch.get("index", i),
                    message=ChatMessage(role="assistant", content=content),
                    finish_reason=ch.get("finish_reason"),
                )
            )
        usage_raw = data.get("usage")
        usage = None
        if isinstance(usage_raw, dict) and usage_raw:
            usage = ChatUsage(
                prompt_tokens=usage_raw.get("prompt_tokens", 0),
                completion_tokens=usage_raw.get("completion_tokens", 0),
                total_tokens=usage_raw.get("total_tokens", 0),
            )
        return ChatResult(provider=self.name, model=req.model, choices=choices, usage=usage)

    def _malformed(self, message: str) -> ApiError:
        return ApiError(code="MALFORMED_RESPONSE", message=message, provider=self.name)
