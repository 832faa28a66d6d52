from .conversation_engine import ConversationEngine, EngineConfig

__all__ = ["ConversationEngine", "EngineConfig"]
