"""进程内会话账本。

单进程、无持久化：进程重启即清空。账本是所有 Conversation 的唯一持有者，
对外只返回快照副本。每个会话 ID 对应一把独立的锁，供上层把
"读取历史 -> 调用 Provider -> 追加消息" 串行化，避免并发更新互相覆盖。
"""

import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional, Sequence

from chat_ledger.domain.conversation import Conversation, IdGenerator
from chat_ledger.domain.exceptions import BusinessError, NotFoundError
from chat_ledger.domain.models import ChatMessage
from chat_ledger.infrastructure.ids import TokenIdGenerator


class InMemoryConversationStore:
    def __init__(self, id_generator: Optional[IdGenerator] = None, max_id_attempts: int = 8):
        self._id_generator = id_generator or TokenIdGenerator()
        self._max_id_attempts = max_id_attempts
        # dict 保持插入顺序，即会话创建顺序
        self._conversations: Dict[str, Conversation] = {}
        self._conv_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.RLock()

    def create(self, initial_message: ChatMessage) -> str:
        with self._lock:
            for _ in range(self._max_id_attempts):
                cid = self._id_generator.new_id()
                if cid not in self._conversations:
                    break
            else:
                raise BusinessError(
                    code="ID_EXHAUSTED",
                    message=f"Could not generate a unique conversation id after {self._max_id_attempts} attempts",
                    http_status=500,
                )
            now = datetime.now(timezone.utc)
            self._conversations[cid] = Conversation(
                id=cid,
                created_at=now,
                updated_at=now,
                messages=[initial_message],
            )
            return cid

    def append(self, conversation_id: str, messages: Sequence[ChatMessage]) -> None:
        with self._lock:
            conv = self._require(conversation_id)
            conv.messages.extend(messages)
            conv.status = "active"
            conv.updated_at = datetime.now(timezone.utc)

    def get(self, conversation_id: str) -> Conversation:
        with self._lock:
            return self._require(conversation_id).snapshot()

    def list_all(self, include_pending: bool = False) -> List[Conversation]:
        with self._lock:
            return [
                conv.snapshot()
                for conv in self._conversations.values()
                if include_pending or conv.status == "active"
            ]

    def discard(self, conversation_id: str) -> None:
        """回滚一个尚未得到回复的会话（仅限 pending 状态）。"""
        with self._lock:
            conv = self._require(conversation_id)
            if conv.status != "pending":
                raise BusinessError(
                    code="CONVERSATION_ACTIVE",
                    message=f"Conversation {conversation_id!r} is active and cannot be discarded",
                    http_status=409,
                )
            del self._conversations[conversation_id]
            self._conv_locks.pop(conversation_id, None)

    @contextmanager
    def reserve(self, initial_message: ChatMessage) -> Iterator[str]:
        """创建 pending 会话，并在返回 ID 之前就持有它的会话锁。"""
        with self._lock:
            cid = self.create(initial_message)
            conv_lock = self._conv_locks.setdefault(cid, threading.Lock())
            conv_lock.acquire()
        try:
            yield cid
        finally:
            conv_lock.release()

    @contextmanager
    def lock(self, conversation_id: str) -> Iterator[None]:
        with self._lock:
            self._require(conversation_id)
            conv_lock = self._conv_locks.setdefault(conversation_id, threading.Lock())
        with conv_lock:
            yield

    def __len__(self) -> int:
        with self._lock:
            return len(self._conversations)

    def _require(self, conversation_id: str) -> Conversation:
        conv = self._conversations.get(conversation_id)
        if conv is None:
            raise NotFoundError(conversation_id)
        return conv
