"""chat_ledger 顶层包。

一个进程内的会话账本服务：把第三方 Chat Completion 接口包装成
createConversation / updateConversation / getAllConversations 三个操作，
并通过 GraphQL schema 对外暴露。
"""

from chat_ledger.api.service import ConversationService
from chat_ledger.engine import ConversationEngine, EngineConfig

__all__ = ["ConversationService", "ConversationEngine", "EngineConfig"]
