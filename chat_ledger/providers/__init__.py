"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护 Provider 与模型配置 (registry)。
- 提供具体实现 (openai_client)。
"""

from typing import Optional

from chat_ledger.config.settings import settings
from chat_ledger.domain.exceptions import ConfigurationError
from chat_ledger.providers.base import ProviderClient
from chat_ledger.providers.openai_client import OpenAIClient
from chat_ledger.providers.registry import get_provider_config


def create_provider(name: Optional[str] = None, config=None) -> ProviderClient:
    """根据名称创建 Provider 实例，默认取配置中的 provider。"""

    cfg = config or settings
    provider_name = name or getattr(cfg, "default_provider", "openai")
    try:
        provider_cfg = get_provider_config(provider_name)
    except KeyError:
        raise ConfigurationError(code="UNKNOWN_PROVIDER", message=f"Unknown provider: {provider_name!r}")
    return OpenAIClient(cfg, provider_config=provider_cfg)
