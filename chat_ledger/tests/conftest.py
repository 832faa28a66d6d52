import pytest

from chat_ledger.engine import ConversationEngine, EngineConfig
from chat_ledger.infrastructure.ids import CounterIdGenerator
from chat_ledger.infrastructure.storage.memory_store import InMemoryConversationStore
from chat_ledger.tests.fakes import FailingProvider, FakeProvider


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def failing_provider():
    return FailingProvider()


@pytest.fixture
def store():
    return InMemoryConversationStore(id_generator=CounterIdGenerator())


@pytest.fixture
def make_engine(store):
    def _make(provider):
        return ConversationEngine(
            store=store,
            provider_client=provider,
            config=EngineConfig(provider=provider.name, model="chat"),
        )

    return _make
