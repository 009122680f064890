"""Request/poll/complete lifecycle with a persistent last-known value."""

from __future__ import annotations

import pytest

from src.decryption.manager import DecryptionManager, DecryptionState
from src.undo_log import UndoLog

KEY = "a" * 64
NOW = 1_700_000_000.0


@pytest.fixture
def manager(service) -> DecryptionManager:
    return DecryptionManager(service)


def test_unknown_key_is_not_ready(manager) -> None:
    result = manager.poll(KEY)

    assert not result.is_ready
    assert result.value == 0
    assert manager.last_known(KEY) is None


def test_second_request_while_pending_is_ignored(manager, backend, service) -> None:
    assert manager.request(backend.encrypt(10), KEY, NOW) is True
    assert manager.request(backend.encrypt(11), KEY, NOW) is False

    assert service.outstanding == 1
    assert manager.record(KEY).state == DecryptionState.PENDING


def test_pending_without_history_reports_not_ready(manager, backend) -> None:
    manager.request(backend.encrypt(10), KEY, NOW)

    assert not manager.poll(KEY).is_ready


def test_fresh_value_moves_record_to_ready(manager, backend, clock) -> None:
    manager.request(backend.encrypt(10), KEY, NOW)
    clock.advance(12)

    result = manager.poll(KEY)

    assert result.is_ready
    assert result.value == 10
    assert not result.was_from_cache
    assert manager.record(KEY).state == DecryptionState.READY
    # a ready record answers without asking the service again
    assert manager.poll(KEY).value == 10


def test_complete_keeps_value_and_returns_to_idle(manager, backend, clock) -> None:
    manager.request(backend.encrypt(10), KEY, NOW)
    clock.advance(12)
    manager.poll(KEY)

    manager.complete(KEY, 10)

    record = manager.record(KEY)
    assert record.state == DecryptionState.IDLE
    assert record.request_id is None
    assert manager.last_known(KEY) == 10


def test_next_cycle_is_served_from_last_known(manager, backend, service) -> None:
    manager.complete(KEY, 10)

    assert manager.request(backend.encrypt(99), KEY, NOW) is True
    result = manager.poll(KEY)

    assert result.is_ready
    assert result.was_from_cache
    assert result.value == 10

    service.release()
    fresh = manager.poll(KEY)
    assert fresh.value == 99
    assert not fresh.was_from_cache


def test_records_are_isolated_per_key(manager, backend, service) -> None:
    manager.complete("b" * 64, 5)
    manager.request(backend.encrypt(1), KEY, NOW)

    assert manager.last_known(KEY) is None
    assert not manager.poll(KEY).is_ready


def test_complete_lets_the_service_drop_the_request(manager, backend, service) -> None:
    manager.request(backend.encrypt(10), KEY, NOW)
    service.release()
    manager.poll(KEY)

    manager.complete(KEY, 10)

    assert service.outstanding == 0


def test_rolled_back_request_is_withdrawn(manager, backend, service) -> None:
    manager.complete(KEY, 10)
    journal = UndoLog()
    manager.journal = journal

    manager.request(backend.encrypt(99), KEY, NOW)
    journal.rollback()

    assert service.outstanding == 0
    record = manager.record(KEY)
    assert record.state == DecryptionState.IDLE
    assert record.last_known == 10


def test_committed_completion_drops_request_only_on_commit(manager, backend, service) -> None:
    manager.request(backend.encrypt(10), KEY, NOW)
    service.release()
    journal = UndoLog()
    manager.journal = journal

    manager.poll(KEY)
    manager.complete(KEY, 10)
    assert service.outstanding == 1

    journal.commit()
    assert service.outstanding == 0
