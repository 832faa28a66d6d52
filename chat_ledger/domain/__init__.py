"""领域层模型与协议。

包含：
- models: 统一的 ChatMessage / ChatRequest / ChatResult 模型。
- conversation: 会话模型及 ConversationStore / IdGenerator 抽象。
- exceptions: 业务异常类型定义。
"""
