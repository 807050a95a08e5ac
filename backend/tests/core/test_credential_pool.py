"""Credential Pool — tests for lazy enrollment, cursor movement and the failover guard.

Tests cover:
    - Secrets loaded once, on first use
    - Duplicate fallback enrolled once; blank secrets ignored
    - Zero credentials raise ConfigurationError
    - advance() moves forward only, and stops at the last credential
    - Guarded advance does not skip a credential when another request already moved
    - Unguarded advance keeps the documented skip behavior
"""

import pytest

from persona_ai.core.credential_pool import Credential, CredentialPool, SharedIndex
from persona_ai.core.errors import ConfigurationError


def test_secrets_loaded_lazily_and_once():
    calls = []

    def load():
        calls.append(1)
        return "key-a", "key-b"

    pool = CredentialPool(load)
    assert calls == []
    pool.active_credential()
    pool.active_credential()
    pool.initialize()
    assert pool.size == 2
    assert calls == [1]


def test_fallback_equal_to_primary_enrolled_once():
    pool = CredentialPool.from_secrets("same-key", "same-key")
    assert pool.size == 1
    assert pool.advance() is False


def test_only_fallback_configured_is_enrolled_at_index_zero():
    pool = CredentialPool.from_secrets(None, "key-b")
    cred = pool.active_credential()
    assert cred.index == 0
    assert cred.secret == "key-b"


def test_no_credentials_raises_configuration_error():
    pool = CredentialPool.from_secrets(None, None)
    with pytest.raises(ConfigurationError) as exc:
        pool.active_credential()
    assert exc.value.code == "NO_CREDENTIALS_CONFIGURED"
    assert "ANTHROPIC_API_KEY" in exc.value.message


def test_empty_string_secrets_are_ignored():
    pool = CredentialPool.from_secrets("", "")
    assert pool.size == 0


def test_advance_moves_forward_then_stops():
    pool = CredentialPool.from_secrets("key-a", "key-b")
    assert pool.active_credential().secret == "key-a"
    assert pool.advance() is True
    assert pool.active_credential().secret == "key-b"
    assert pool.advance() is False
    assert pool.state.active_index == 1


def test_state_reports_index_and_size():
    pool = CredentialPool.from_secrets("key-a", "key-b")
    state = pool.state
    assert state.active_index == 0
    assert state.pool_size == 2
    assert state.has_fallback is True


def test_credential_repr_hides_secret():
    cred = Credential(index=0, secret="sk-ant-very-secret")
    assert "sk-ant-very-secret" not in repr(cred)


def test_guarded_advance_does_not_skip_when_already_moved():
    pool = CredentialPool.from_secrets("key-a", "key-b")
    # two requests both failed on index 0
    assert pool.advance(observed_index=0) is True
    assert pool.advance(observed_index=0) is True
    assert pool.state.active_index == 1


def test_guarded_advance_from_last_credential_is_exhausted():
    pool = CredentialPool.from_secrets("key-a", "key-b")
    pool.advance(observed_index=0)
    assert pool.advance(observed_index=1) is False


def test_unguarded_advance_keeps_skip_race():
    pool = CredentialPool.from_secrets("key-a", "key-b", guarded=False)
    assert pool.advance(observed_index=0) is True
    # second request also failed on index 0 but the pool is already on its last key
    assert pool.advance(observed_index=0) is False


def test_shared_index_is_shared_between_pools():
    index = SharedIndex()
    first = CredentialPool.from_secrets("key-a", "key-b", index=index)
    second = CredentialPool.from_secrets("key-a", "key-b", index=index)
    first.advance()
    assert second.active_credential().index == 1


def test_shared_index_compare_and_advance():
    index = SharedIndex()
    assert index.compare_and_advance(0, limit=3) is True
    assert index.value == 1
    assert index.compare_and_advance(0, limit=3) is True
    assert index.value == 1
    assert index.compare_and_advance(1, limit=3) is True
    assert index.value == 2
    assert index.compare_and_advance(2, limit=3) is False
    assert index.value == 2
