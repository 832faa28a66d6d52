import re

import pytest

from chat_ledger.domain.exceptions import ConfigurationError
from chat_ledger.infrastructure.ids import (
    Base36IdGenerator,
    CounterIdGenerator,
    TokenIdGenerator,
    UuidIdGenerator,
    make_id_generator,
)


def test_token_ids_are_url_safe_and_distinct():
    gen = TokenIdGenerator()
    ids = {gen.new_id() for _ in range(200)}
    assert len(ids) == 200
    assert all(re.fullmatch(r"[A-Za-z0-9_-]{12}", i) for i in ids)


def test_base36_ids():
    gen = Base36IdGenerator(length=13)
    cid = gen.new_id()
    assert re.fullmatch(r"[0-9a-z]{13}", cid)


def test_uuid_ids():
    assert len(UuidIdGenerator().new_id()) == 32


def test_counter_is_monotonic():
    gen = CounterIdGenerator(prefix="conv-")
    assert [gen.new_id() for _ in range(3)] == ["conv-1", "conv-2", "conv-3"]


def test_make_id_generator():
    assert isinstance(make_id_generator("token"), TokenIdGenerator)
    assert isinstance(make_id_generator("COUNTER"), CounterIdGenerator)
    with pytest.raises(ConfigurationError) as exc:
        make_id_generator("snowflake")
    assert exc.value.code == "UNKNOWN_ID_STRATEGY"
