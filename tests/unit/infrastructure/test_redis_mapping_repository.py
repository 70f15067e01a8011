"""
Unit tests for RedisSecureUrlMappingRepository.

The Redis repository is mocked; the Lua scripts themselves run on Redis
and are only checked for being wired to the right keys and arguments.
"""

import json
from datetime import timedelta

from securelink.domain.secure_links import ConsumeOutcome
from securelink.infrastructure.redis_mapping_repository import (
    DELETE_IF_STALE_SCRIPT,
    EXPIRY_GRACE_SECONDS,
    TRY_CONSUME_SCRIPT,
    RedisSecureUrlMappingRepository,
)
from tests.fixtures import DEFAULT_NOW, create_mapping

SECURE_ID = "AbCdEfGhIjKlMnOp"
NOW_MS = int(DEFAULT_NOW.timestamp() * 1000)


def test_registers_both_scripts(mock_redis_repository):
    RedisSecureUrlMappingRepository(mock_redis_repository)

    sources = [call.args[0] for call in mock_redis_repository.register_script.call_args_list]
    assert sources == [TRY_CONSUME_SCRIPT, DELETE_IF_STALE_SCRIPT]


def test_insert_uses_set_nx_with_ttl(mock_redis_repository):
    repo = RedisSecureUrlMappingRepository(mock_redis_repository)
    mapping = create_mapping(expires_in=timedelta(minutes=15), max_accesses=1)

    assert repo.insert(mapping) is True

    args, kwargs = mock_redis_repository.set_json.call_args
    assert args[0] == f"secure_url:{SECURE_ID}"
    assert args[1]["expires_at_ms"] == NOW_MS + 15 * 60 * 1000
    assert args[1]["max_accesses"] == 1
    assert kwargs == {"ttl": 15 * 60 + EXPIRY_GRACE_SECONDS, "only_if_absent": True}


def test_insert_without_expiry_has_no_ttl(mock_redis_repository):
    repo = RedisSecureUrlMappingRepository(mock_redis_repository)

    repo.insert(create_mapping(expires_in=None))

    args, kwargs = mock_redis_repository.set_json.call_args
    assert args[1]["expires_at_ms"] is None
    assert kwargs["ttl"] is None


def test_insert_reports_taken_id(mock_redis_repository):
    mock_redis_repository.set_json.return_value = False
    repo = RedisSecureUrlMappingRepository(mock_redis_repository)

    assert repo.insert(create_mapping()) is False


def test_get_deserializes_mapping(mock_redis_repository):
    mapping = create_mapping(max_accesses=5, access_count=2)
    mock_redis_repository.get_json.return_value = mapping.to_dict()
    repo = RedisSecureUrlMappingRepository(mock_redis_repository)

    assert repo.get(SECURE_ID) == mapping
    mock_redis_repository.get_json.assert_called_with(f"secure_url:{SECURE_ID}")


def test_get_missing_and_corrupt(mock_redis_repository):
    repo = RedisSecureUrlMappingRepository(mock_redis_repository)
    assert repo.get(SECURE_ID) is None

    mock_redis_repository.get_json.return_value = {"id": SECURE_ID}
    assert repo.get(SECURE_ID) is None


def test_try_consume_consumed(mock_redis_repository):
    repo = RedisSecureUrlMappingRepository(mock_redis_repository)
    consumed = create_mapping(max_accesses=1, access_count=1)
    mock_redis_repository.run_script.return_value = [
        b"consumed", json.dumps(consumed.to_dict()).encode("utf-8"),
    ]

    result = repo.try_consume(SECURE_ID, DEFAULT_NOW)

    assert result.outcome is ConsumeOutcome.CONSUMED
    assert result.mapping.access_count == 1
    _, kwargs = mock_redis_repository.run_script.call_args
    assert kwargs == {"keys": [f"secure_url:{SECURE_ID}"], "args": [NOW_MS]}
    script = mock_redis_repository.run_script.call_args.args[0]
    assert script.source == TRY_CONSUME_SCRIPT


def test_try_consume_failures(mock_redis_repository):
    repo = RedisSecureUrlMappingRepository(mock_redis_repository)

    for reply, outcome in [
        ([b"not_found"], ConsumeOutcome.NOT_FOUND),
        ([b"expired"], ConsumeOutcome.EXPIRED),
        (["exhausted"], ConsumeOutcome.EXHAUSTED),
    ]:
        mock_redis_repository.run_script.return_value = reply
        result = repo.try_consume(SECURE_ID, DEFAULT_NOW)
        assert result.outcome is outcome
        assert result.mapping is None


def test_delete(mock_redis_repository):
    repo = RedisSecureUrlMappingRepository(mock_redis_repository)

    assert repo.delete(SECURE_ID) is True
    mock_redis_repository.delete.assert_called_once_with(f"secure_url:{SECURE_ID}")


def test_delete_non_live_runs_script_per_key(mock_redis_repository):
    mock_redis_repository.iter_keys_by_pattern.return_value = iter(
        ["secure_url:a", "secure_url:b", "secure_url:c"]
    )
    mock_redis_repository.run_script.side_effect = [1, 0, 1]
    repo = RedisSecureUrlMappingRepository(mock_redis_repository)

    assert repo.delete_non_live(DEFAULT_NOW) == 2

    mock_redis_repository.iter_keys_by_pattern.assert_called_once_with("secure_url:*")
    keys = [call.kwargs["keys"] for call in mock_redis_repository.run_script.call_args_list]
    assert keys == [["secure_url:a"], ["secure_url:b"], ["secure_url:c"]]
    script = mock_redis_repository.run_script.call_args.args[0]
    assert script.source == DELETE_IF_STALE_SCRIPT


def test_iter_all_skips_vanished_entries(mock_redis_repository):
    mapping = create_mapping(secure_id="kept000000000000")
    mock_redis_repository.iter_keys_by_pattern.return_value = iter(
        ["secure_url:kept000000000000", "secure_url:gone000000000000"]
    )
    mock_redis_repository.get_json.side_effect = [mapping.to_dict(), None]
    repo = RedisSecureUrlMappingRepository(mock_redis_repository)

    assert [m.id for m in repo.iter_all()] == ["kept000000000000"]


def test_custom_namespace(mock_redis_repository):
    repo = RedisSecureUrlMappingRepository(mock_redis_repository, key_namespace="links")

    repo.delete(SECURE_ID)

    mock_redis_repository.delete.assert_called_once_with(f"links:{SECURE_ID}")
