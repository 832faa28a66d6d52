"""会话引擎核心模块。

把会话账本与 Completion Provider 组合成三个对外操作：
创建会话、继续会话、列出全部会话。

- 每次调用 Provider 期间持有该会话的锁，同一会话的并发更新按加锁顺序串行执行。
- 新会话以 pending 状态写入账本，写入时已持有会话锁，Provider 失败时回滚删除，
  账本中不会残留没有回复的提问。pending 会话对 update 不可见。
- 继续会话时历史在本地拼接，只有拿到回复后才一次性追加 user + assistant 两条消息。
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List
from uuid import uuid4

from chat_ledger.domain.conversation import Conversation, ConversationStore
from chat_ledger.domain.exceptions import NotFoundError, UpstreamError
from chat_ledger.domain.models import ChatMessage, ChatRequest, ChatResult, ConversationReply
from chat_ledger.infrastructure.logging.logger import logger
from chat_ledger.providers.base import ProviderClient


@dataclass
class EngineConfig:
    provider: str
    model: str = "chat"
    temperature: float = 0.7


class ConversationEngine:
    def __init__(
        self,
        store: ConversationStore,
        provider_client: ProviderClient,
        config: EngineConfig | None = None,
    ):
        self._store = store
        self._provider_client = provider_client
        self._config = config or EngineConfig(provider=provider_client.name)

    @property
    def store(self) -> ConversationStore:
        return self._store

    def create_conversation(self, query: str) -> ConversationReply:
        """创建新会话并取得第一条回复。

        Raises:
            UpstreamError: Provider 调用失败（此时新会话已回滚）
        """
        start_time = time.time()
        log_ctx: Dict[str, Any] = {"trace_id": f"tr-{uuid4().hex}", "operation": "createConversation"}

        user_msg = ChatMessage.user(query)
        with self._store.reserve(user_msg) as cid:
            log_ctx["conversation_id"] = cid
            self._log(logging.INFO, "Created new conversation", log_ctx)
            try:
                reply = self._complete([user_msg], log_ctx)
            except Exception:
                self._store.discard(cid)
                self._log(logging.WARNING, "Rolled back unanswered conversation", log_ctx)
                raise
            self._store.append(cid, [reply])

        self._log(
            logging.INFO,
            "Completed createConversation",
            log_ctx,
            elapsed_seconds=round(time.time() - start_time, 2),
        )
        return ConversationReply(response=reply.content, conversation_id=cid)

    def update_conversation(self, conversation_id: str, query: str) -> ConversationReply:
        """在已有会话上追加一轮问答。

        Raises:
            NotFoundError: 会话不存在或尚未得到首条回复（账本不变）
            UpstreamError: Provider 调用失败（账本不变）
        """
        start_time = time.time()
        log_ctx: Dict[str, Any] = {
            "trace_id": f"tr-{uuid4().hex}",
            "operation": "updateConversation",
            "conversation_id": conversation_id,
        }

        with self._store.lock(conversation_id):
            conv = self._store.get(conversation_id)
            if conv.status == "pending":
                raise NotFoundError(conversation_id)
            user_msg = ChatMessage.user(query)
            reply = self._complete(conv.messages + [user_msg], log_ctx)
            self._store.append(conversation_id, [user_msg, reply])

        self._log(
            logging.INFO,
            "Completed updateConversation",
            log_ctx,
            elapsed_seconds=round(time.time() - start_time, 2),
            message_count=len(conv.messages) + 2,
        )
        return ConversationReply(response=reply.content, conversation_id=conversation_id)

    def get_all_conversations(self) -> List[Conversation]:
        return self._store.list_all()

    def _complete(self, history: List[ChatMessage], log_ctx: Dict[str, Any]) -> ChatMessage:
        req = ChatRequest(
            provider=self._config.provider,
            model=self._config.model,
            messages=list(history),
            temperature=self._config.temperature,
        )
        self._log(
            logging.INFO,
            "Calling provider",
            log_ctx,
            provider=self._config.provider,
            model=self._config.model,
            message_count=len(history),
        )
        try:
            result: ChatResult = self._provider_client.chat(req)
        except UpstreamError as e:
            self._log(logging.ERROR, f"Provider call failed: {e.message}", log_ctx, code=e.code)
            raise
        if not result.choices:
            self._log(logging.ERROR, "Provider returned no choices", log_ctx)
            raise UpstreamError(code="EMPTY_COMPLETION", message="Provider returned no choices")

        usage_meta: Dict[str, Any] = {}
        if result.usage:
            usage_meta = {
                "prompt_tokens": result.usage.prompt_tokens,
                "completion_tokens": result.usage.completion_tokens,
                "total_tokens": result.usage.total_tokens,
            }
        self._log(logging.INFO, "Provider replied", log_ctx, **usage_meta)
        # 账本只保存 assistant 角色的回复
        return ChatMessage.assistant(result.choices[0].message.content)

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
