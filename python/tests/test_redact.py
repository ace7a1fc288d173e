"""safe_kv keeps user content out of log events."""

import pytest

from codevault.services.redact import FORBIDDEN_KEYS, safe_kv


def test_passes_metadata_through():
    fields = safe_kv(provider="openai", model_name="gpt-4o-mini", latency_ms=100)

    assert fields == {"provider": "openai", "model_name": "gpt-4o-mini", "latency_ms": 100}


def test_sizes_and_digests_are_allowed():
    fields = safe_kv(content_length=42, message_chars=100, code_sha256="ab12")

    assert fields == {"content_length": 42, "message_chars": 100, "code_sha256": "ab12"}


@pytest.mark.parametrize("key", sorted(FORBIDDEN_KEYS))
def test_forbidden_key_raises_in_test_env(key):
    with pytest.raises(ValueError, match=key):
        safe_kv(_env="test", **{key: "leak"})


def test_forbidden_key_is_dropped_in_prod():
    fields = safe_kv(_env="prod", provider="openai", code="function fib(n){}")

    assert fields == {"provider": "openai"}
