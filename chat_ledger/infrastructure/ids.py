"""会话 ID 生成策略。

所有生成器都实现 domain.conversation.IdGenerator 协议（new_id()）。
唯一性由账本在插入时再校验一次，冲突时重新生成。
"""

import itertools
import secrets
import string
import threading
from typing import Dict, Type
from uuid import uuid4

from chat_ledger.domain.conversation import IdGenerator
from chat_ledger.domain.exceptions import ConfigurationError


_BASE36_ALPHABET = string.digits + string.ascii_lowercase


class TokenIdGenerator:
    """加密安全的 URL-safe 随机 token（默认 9 字节 -> 12 个字符）。"""

    def __init__(self, nbytes: int = 9):
        self._nbytes = nbytes

    def new_id(self) -> str:
        return secrets.token_urlsafe(self._nbytes)


class Base36IdGenerator:
    """与旧版教程相同形态的 base-36 随机串，但使用 secrets 作为随机源。"""

    def __init__(self, length: int = 13):
        if length < 1:
            raise ValueError("length must be positive")
        self._length = length

    def new_id(self) -> str:
        return "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(self._length))


class UuidIdGenerator:
    def new_id(self) -> str:
        return uuid4().hex


class CounterIdGenerator:
    """单调递增计数器，线程安全。"""

    def __init__(self, prefix: str = "c-", start: int = 1):
        self._prefix = prefix
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def new_id(self) -> str:
        with self._lock:
            value = next(self._counter)
        return f"{self._prefix}{value}"


ID_GENERATORS: Dict[str, Type] = {
    "token": TokenIdGenerator,
    "base36": Base36IdGenerator,
    "uuid": UuidIdGenerator,
    "counter": CounterIdGenerator,
}


def make_id_generator(strategy: str) -> IdGenerator:
    """根据名称创建 ID 生成器，名称不区分大小写。"""

    factory = ID_GENERATORS.get(strategy.lower())
    if factory is None:
        raise ConfigurationError(
            code="UNKNOWN_ID_STRATEGY",
            message=f"Unknown id strategy: {strategy!r}",
        )
    return factory()
