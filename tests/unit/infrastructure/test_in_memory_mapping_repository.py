"""
Unit tests for InMemorySecureUrlMappingRepository.
"""

import threading
from datetime import timedelta

from securelink.domain.secure_links import ConsumeOutcome
from securelink.infrastructure.in_memory_mapping_repository import (
    InMemorySecureUrlMappingRepository,
)
from tests.fixtures import DEFAULT_NOW, create_mapping


def test_insert_refuses_taken_id():
    repo = InMemorySecureUrlMappingRepository()

    assert repo.insert(create_mapping()) is True
    assert repo.insert(create_mapping(object_key="other.pdf")) is False
    assert repo.get("AbCdEfGhIjKlMnOp").object_key == "2025/01/31/report.pdf"


def test_get_returns_detached_copy():
    repo = InMemorySecureUrlMappingRepository()
    repo.insert(create_mapping())

    snapshot = repo.get("AbCdEfGhIjKlMnOp")
    snapshot.access_count = 99

    assert repo.get("AbCdEfGhIjKlMnOp").access_count == 0


def test_insert_stores_a_copy():
    repo = InMemorySecureUrlMappingRepository()
    mapping = create_mapping()
    repo.insert(mapping)

    mapping.access_count = 7

    assert repo.get(mapping.id).access_count == 0


def test_try_consume_counts_access():
    repo = InMemorySecureUrlMappingRepository()
    repo.insert(create_mapping(max_accesses=2))

    result = repo.try_consume("AbCdEfGhIjKlMnOp", DEFAULT_NOW)

    assert result.outcome is ConsumeOutcome.CONSUMED
    assert result.mapping.access_count == 1
    assert repo.get("AbCdEfGhIjKlMnOp").access_count == 1


def test_try_consume_unknown_id():
    repo = InMemorySecureUrlMappingRepository()
    assert repo.try_consume("missing", DEFAULT_NOW).outcome is ConsumeOutcome.NOT_FOUND


def test_try_consume_deletes_expired():
    repo = InMemorySecureUrlMappingRepository()
    repo.insert(create_mapping(expires_in=timedelta(seconds=5)))

    result = repo.try_consume("AbCdEfGhIjKlMnOp", DEFAULT_NOW + timedelta(seconds=5))

    assert result.outcome is ConsumeOutcome.EXPIRED
    assert result.mapping is None
    assert repo.get("AbCdEfGhIjKlMnOp") is None


def test_try_consume_deletes_exhausted():
    repo = InMemorySecureUrlMappingRepository()
    repo.insert(create_mapping(max_accesses=1, access_count=1))

    assert repo.try_consume("AbCdEfGhIjKlMnOp", DEFAULT_NOW).outcome is ConsumeOutcome.EXHAUSTED
    assert repo.count() == 0


def test_concurrent_consume_respects_cap():
    repo = InMemorySecureUrlMappingRepository()
    repo.insert(create_mapping(max_accesses=3))
    barrier = threading.Barrier(12)
    outcomes = []

    def consume():
        barrier.wait()
        outcomes.append(repo.try_consume("AbCdEfGhIjKlMnOp", DEFAULT_NOW).outcome)

    threads = [threading.Thread(target=consume) for _ in range(12)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert outcomes.count(ConsumeOutcome.CONSUMED) == 3


def test_delete_non_live():
    repo = InMemorySecureUrlMappingRepository()
    repo.insert(create_mapping(secure_id="expired000000000", expires_in=timedelta(seconds=1)))
    repo.insert(create_mapping(secure_id="exhausted0000000", max_accesses=1, access_count=1))
    repo.insert(create_mapping(secure_id="live000000000000"))

    removed = repo.delete_non_live(DEFAULT_NOW + timedelta(seconds=2))

    assert removed == 2
    assert [m.id for m in repo.iter_all()] == ["live000000000000"]


def test_delete_and_clear():
    repo = InMemorySecureUrlMappingRepository()
    repo.insert(create_mapping())

    assert repo.delete("AbCdEfGhIjKlMnOp") is True
    assert repo.delete("AbCdEfGhIjKlMnOp") is False

    repo.insert(create_mapping())
    repo.clear()
    assert repo.count() == 0


def test_iter_all_is_a_snapshot():
    repo = InMemorySecureUrlMappingRepository()
    repo.insert(create_mapping(secure_id="first00000000000"))
    listing = repo.iter_all()

    repo.insert(create_mapping(secure_id="second0000000000"))

    assert [m.id for m in listing] == ["first00000000000"]
