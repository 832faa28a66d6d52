import dataclasses
from datetime import datetime, timezone

import pytest

from chat_ledger.domain.conversation import Conversation
from chat_ledger.domain.models import ChatMessage


def test_models_exist():
    cm = ChatMessage.user("hi")
    assert cm.role == "user"
    assert ChatMessage.assistant("hello") == ChatMessage(role="assistant", content="hello")
    now = datetime.now(timezone.utc)
    conv = Conversation(id="c1", created_at=now, updated_at=now, messages=[cm])
    assert conv.id == "c1"
    assert conv.status == "pending"


def test_message_is_immutable():
    cm = ChatMessage.user("hi")
    with pytest.raises(dataclasses.FrozenInstanceError):
        cm.content = "changed"


def test_snapshot_does_not_share_message_list():
    now = datetime.now(timezone.utc)
    conv = Conversation(id="c1", created_at=now, updated_at=now, messages=[ChatMessage.user("hi")])
    snap = conv.snapshot()
    snap.messages.append(ChatMessage.assistant("x"))
    assert len(conv.messages) == 1
