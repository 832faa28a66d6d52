"""测试用的 Provider 替身。"""

from chat_ledger.domain.exceptions import NetworkError
from chat_ledger.domain.models import ChatChoice, ChatMessage, ChatResult, ChatUsage


class FakeProvider:
    """按调用顺序返回 replies，并记录收到的每个请求。"""

    name = "fake"

    def __init__(self, replies=None):
        self._replies = list(replies or [])
        self.requests = []

    def chat(self, req):
        self.requests.append(req)
        idx = len(self.requests) - 1
        content = self._replies[idx] if idx < len(self._replies) else f"reply-{idx + 1}"
        return ChatResult(
            provider="fake",
            model=req.model,
            choices=[ChatChoice(index=0, message=ChatMessage(role="assistant", content=content))],
            usage=ChatUsage(prompt_tokens=1, completion_tokens=1, total_tokens=2),
        )


class FailingProvider:
    name = "failing"

    def __init__(self):
        self.calls = 0

    def chat(self, req):
        self.calls += 1
        raise NetworkError(code="NETWORK_ERROR", message="connection refused")
