"""对外 API 服务模块。

把 ConversationEngine 的结果整形为 GraphQL schema 对应的字典结构
（camelCase 字段名），并负责启动时的装配：读取配置、创建 Provider 与账本。
"""

from typing import Any, Dict, List, Optional

from chat_ledger.config.settings import Settings, settings as default_settings
from chat_ledger.domain.conversation import Conversation, ConversationStore
from chat_ledger.domain.exceptions import BusinessError
from chat_ledger.engine import ConversationEngine, EngineConfig
from chat_ledger.infrastructure.ids import make_id_generator
from chat_ledger.infrastructure.logging.logger import logger
from chat_ledger.infrastructure.storage.memory_store import InMemoryConversationStore
from chat_ledger.providers import create_provider
from chat_ledger.providers.base import ProviderClient


class ConversationService:
    """三个对外操作的函数接口，供 GraphQL resolver 或其他传输层调用。"""

    def __init__(self, engine: ConversationEngine):
        self._engine = engine

    @classmethod
    def from_settings(
        cls,
        config: Optional[Settings] = None,
        provider: Optional[ProviderClient] = None,
        store: Optional[ConversationStore] = None,
    ) -> "ConversationService":
        """启动时装配服务。

        缺少 API 密钥时 create_provider 抛出 ConfigurationError，
        调用方应直接终止进程，不开始服务。
        """
        cfg = config or default_settings
        if provider is None:
            provider = create_provider(config=cfg)
        if store is None:
            store = InMemoryConversationStore(id_generator=make_id_generator(cfg.id_strategy))
        engine = ConversationEngine(
            store=store,
            provider_client=provider,
            config=EngineConfig(
                provider=provider.name,
                model=cfg.default_model,
                temperature=cfg.temperature,
            ),
        )
        logger.info(
            "Conversation service ready",
            extra={"extra": {"provider": provider.name, "model": cfg.default_model, "id_strategy": cfg.id_strategy}},
        )
        return cls(engine)

    @property
    def engine(self) -> ConversationEngine:
        return self._engine

    def create_conversation(self, query: str) -> Dict[str, Any]:
        """创建会话。

        Returns:
            {"response": 助手回复文本, "conversationId": 新会话ID}
        """
        try:
            reply = self._engine.create_conversation(query)
        except BusinessError as e:
            self._log_failure("createConversation", e)
            raise
        return {"response": reply.response, "conversationId": reply.conversation_id}

    def update_conversation(self, conversation_id: str, query: str) -> Dict[str, Any]:
        """继续会话。

        Raises:
            NotFoundError: 会话不存在
            UpstreamError: Provider 调用失败
        """
        try:
            reply = self._engine.update_conversation(conversation_id, query)
        except BusinessError as e:
            self._log_failure("updateConversation", e, conversation_id=conversation_id)
            raise
        return {"response": reply.response, "conversationId": reply.conversation_id}

    def get_all_conversations(self) -> List[Dict[str, Any]]:
        return [to_payload(c) for c in self._engine.get_all_conversations()]

    @staticmethod
    def _log_failure(operation: str, error: BusinessError, **fields: Any) -> None:
        logger.error(f"{operation} failed: {error.message}", extra={"extra": {
            "operation": operation,
            "code": error.code,
            "http_status": error.http_status,
            **fields,
        }})


def to_payload(conv: Conversation) -> Dict[str, Any]:
    return {
        "conversationId": conv.id,
        "messages": [{"role": m.role, "content": m.content} for m in conv.messages],
    }
