from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import ContextManager, List, Literal, Protocol, Sequence

from .models import ChatMessage


# pending: 已写入首条用户消息、尚未收到回复；active: 至少完成一轮问答
ConversationStatus = Literal["pending", "active"]


@dataclass
class Conversation:
    id: str
    created_at: datetime
    updated_at: datetime
    messages: List[ChatMessage] = field(default_factory=list)
    status: ConversationStatus = "pending"

    def snapshot(self) -> "Conversation":
        """返回一个与账本内部状态解耦的副本（消息本身不可变，可共享）。"""
        return replace(self, messages=list(self.messages))


class IdGenerator(Protocol):
    def new_id(self) -> str:
        ...


class ConversationStore(Protocol):
    def create(self, initial_message: ChatMessage) -> str:
        ...

    def append(self, conversation_id: str, messages: Sequence[ChatMessage]) -> None:
        ...

    def get(self, conversation_id: str) -> Conversation:
        ...

    def list_all(self, include_pending: bool = False) -> List[Conversation]:
        ...

    def discard(self, conversation_id: str) -> None:
        ...

    def reserve(self, initial_message: ChatMessage) -> ContextManager[str]:
        ...

    def lock(self, conversation_id: str) -> ContextManager[None]:
        ...
