"""Encrypted primitive contract, exercised through the mock backend."""

from __future__ import annotations

import pytest

from src.fhe.backend import OPERATION_COSTS, MockFheBackend
from src.fhe.decryption_service import MockDecryptionService


def test_arithmetic_round_trips_through_vault(backend: MockFheBackend) -> None:
    a = backend.encrypt(21)
    b = backend.encrypt(4)

    assert backend.unseal(backend.add(a, b)) == 25
    assert backend.unseal(backend.sub(a, b)) == 17
    assert backend.unseal(backend.mul(a, b)) == 84
    assert backend.unseal(backend.div(a, b)) == 5


def test_subtraction_underflow_wraps(backend: MockFheBackend) -> None:
    result = backend.sub(backend.encrypt(3), backend.encrypt(5))

    assert backend.unseal(result) == (1 << 128) - 2


def test_division_by_encrypted_zero_does_not_fault(backend: MockFheBackend) -> None:
    result = backend.div(backend.encrypt(7), backend.encrypt(0))

    assert backend.unseal(result) == backend.max_value


@pytest.mark.parametrize(
    "op, a, b, expected",
    [
        ("gt", 5, 3, True),
        ("gt", 3, 3, False),
        ("lt", 2, 3, True),
        ("gte", 3, 3, True),
        ("lte", 4, 3, False),
        ("eq", 9, 9, True),
        ("eq", 9, 8, False),
    ],
)
def test_comparisons_produce_encrypted_bools(backend, op, a, b, expected) -> None:
    cond = getattr(backend, op)(backend.encrypt(a), backend.encrypt(b))

    assert backend.unseal(cond) is expected


def test_select_and_boolean_combinators(backend: MockFheBackend) -> None:
    yes = backend.encrypt_bool(True)
    no = backend.encrypt_bool(False)
    a = backend.encrypt(1)
    b = backend.encrypt(2)

    assert backend.unseal(backend.select(yes, a, b)) == 1
    assert backend.unseal(backend.select(no, a, b)) == 2
    assert backend.unseal(backend.and_(yes, no)) is False
    assert backend.unseal(backend.or_(yes, no)) is True
    assert backend.unseal(backend.not_(no)) is True


def test_encrypted_values_refuse_native_branching(backend: MockFheBackend) -> None:
    value = backend.encrypt(1)
    cond = backend.gt(value, backend.encrypt(0))

    with pytest.raises(TypeError):
        bool(value)
    with pytest.raises(TypeError):
        if cond:
            pass


def test_foreign_ciphertext_is_rejected(backend: MockFheBackend) -> None:
    other = MockFheBackend()

    with pytest.raises(ValueError):
        backend.add(backend.encrypt(1), other.encrypt(1))


def test_negative_plaintext_cannot_be_encrypted(backend: MockFheBackend) -> None:
    with pytest.raises(ValueError):
        backend.encrypt(-1)


def test_operations_charge_cost_units(backend: MockFheBackend) -> None:
    a = backend.encrypt(1)
    b = backend.encrypt(2)
    before = backend.cost_units

    backend.mul(a, b)
    backend.select(backend.eq(a, b), a, b)

    assert backend.cost_units - before == OPERATION_COSTS["mul"] + OPERATION_COSTS["eq"] + OPERATION_COSTS["select"]
    assert backend.operation_counts["mul"] == 1


def test_decryption_service_honours_latency(backend, clock) -> None:
    service = MockDecryptionService(backend, latency_seconds=10, clock=clock)
    request_id = service.request(backend.encrypt(42))

    assert service.result(request_id) == (0, False)
    clock.advance(10)
    assert service.result(request_id) == (42, True)


def test_decryption_service_release_and_unknown_ids(backend, clock) -> None:
    service = MockDecryptionService(backend, latency_seconds=1_000, clock=clock)
    first = service.request(backend.encrypt(7))
    second = service.request(backend.encrypt(8))

    service.release(first)
    assert service.result(first) == (7, True)
    assert service.result(second) == (0, False)

    service.release()
    assert service.result(second) == (8, True)
    assert service.result(999) == (0, False)
    assert service.outstanding == 2


def test_decryption_service_forgets_finished_requests(backend, clock) -> None:
    service = MockDecryptionService(backend, latency_seconds=0, clock=clock)
    request_id = service.request(backend.encrypt(5))
    service.release(request_id)

    service.forget(request_id)

    assert service.outstanding == 0
    assert service.result(request_id) == (0, False)
