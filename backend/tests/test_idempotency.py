"""
Duplicate-submission guard tests.

The store claims a key for a TTL; write routes reject a repeated
X-Idempotency-Key inside that window with 409.
"""

import pytest

from posdocs.services.idempotency_service import InMemoryKeyValueStore

from conftest import FakeClock, line


DUPLICATE_MESSAGE = "Duplicate submission. Please wait for the previous request to complete."


class TestInMemoryKeyValueStore:

    def test_first_claim_wins(self):
        store = InMemoryKeyValueStore(clock=FakeClock())
        assert store.set_if_absent("k", 120) is True
        assert store.set_if_absent("k", 120) is False
        assert store.set_if_absent("other", 120) is True
        assert len(store) == 2

    def test_claim_expires_after_ttl(self):
        clock = FakeClock()
        store = InMemoryKeyValueStore(clock=clock)
        store.set_if_absent("k", 120)

        clock.advance(119.9)
        assert store.set_if_absent("k", 120) is False

        clock.advance(0.1)
        assert store.set_if_absent("k", 120) is True

    def test_expired_keys_are_purged(self):
        clock = FakeClock()
        store = InMemoryKeyValueStore(clock=clock)
        store.set_if_absent("a", 10)
        store.set_if_absent("b", 60)

        clock.advance(30)
        assert len(store) == 1


@pytest.fixture
def invoice_payload(customer, sales_rep):
    return {
        "customerId": customer.id,
        "salesRepId": sales_rep.id,
        "items": [line(2, 100)],
        "depositReceived": 100,
    }


def with_key(headers, key):
    return {**headers, "X-Idempotency-Key": key}


class TestIdempotentRoutes:

    def test_repeat_within_ttl_rejected(self, client, rep_headers, invoice_payload):
        headers = with_key(rep_headers, "invoice-form-1")

        first = client.post("/api/invoice", json=invoice_payload, headers=headers)
        second = client.post("/api/invoice", json=invoice_payload, headers=headers)

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json["error"] == DUPLICATE_MESSAGE

        listing = client.get("/api/invoice", headers=rep_headers)
        assert listing.json["total"] == 1

    def test_key_reusable_after_ttl(self, client, clock, rep_headers, invoice_payload):
        headers = with_key(rep_headers, "invoice-form-2")

        assert client.post("/api/invoice", json=invoice_payload, headers=headers).status_code == 201
        clock.advance(121)
        assert client.post("/api/invoice", json=invoice_payload, headers=headers).status_code == 201

    def test_requests_without_key_are_not_guarded(self, client, rep_headers, invoice_payload):
        for _ in range(2):
            assert client.post("/api/invoice", json=invoice_payload, headers=rep_headers).status_code == 201

    def test_key_is_held_even_when_request_fails(self, client, rep_headers, invoice_payload):
        headers = with_key(rep_headers, "invoice-form-3")

        bad = client.post("/api/invoice", json={**invoice_payload, "items": []}, headers=headers)
        retry = client.post("/api/invoice", json=invoice_payload, headers=headers)

        assert bad.status_code == 400
        assert retry.status_code == 409

    def test_key_is_shared_across_endpoints(self, client, rep_headers, invoice_payload):
        headers = with_key(rep_headers, "shared-key")

        assert client.post("/api/invoice", json=invoice_payload, headers=headers).status_code == 201
        receipt = client.post("/api/receipt", json={"items": [line(1, 10)]}, headers=headers)
        assert receipt.status_code == 409

    def test_permission_checked_before_key_is_claimed(
        self, client, stock_headers, rep_headers, invoice_payload
    ):
        denied = client.post("/api/invoice", json=invoice_payload, headers=with_key(stock_headers, "k-1"))
        allowed = client.post("/api/invoice", json=invoice_payload, headers=with_key(rep_headers, "k-1"))

        assert denied.status_code == 403
        assert allowed.status_code == 201
