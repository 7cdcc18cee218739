"""Tests for transaction records, listing decoding and timestamps."""

from datetime import datetime, timedelta, timezone

import pytest

from conga_sandbox.schemas import (
    HistoryAction,
    Signer,
    Transaction,
    decode_package_listing,
    format_timestamp,
    parse_timestamp,
)


class TestTimestamps:
    """UTC timestamp helpers."""

    def test_format_uses_z_suffix_and_milliseconds(self):
        value = datetime(2024, 3, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)

        assert format_timestamp(value) == "2024-03-01T12:00:00.123Z"

    def test_format_converts_to_utc(self):
        value = datetime(2024, 3, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))

        assert format_timestamp(value) == "2024-03-01T12:00:00.000Z"

    def test_parse_z_suffix(self):
        parsed = parse_timestamp("2024-03-01T12:00:00.000Z")

        assert parsed == datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

    def test_parse_naive_as_utc(self):
        assert parse_timestamp("2024-03-01T12:00:00").tzinfo is not None

    @pytest.mark.parametrize("value", [None, "", "yesterday", 12345])
    def test_parse_invalid(self, value):
        assert parse_timestamp(value) is None


class TestDecodePackageListing:
    """Tagged decoding of the listing response."""

    def test_packages_array(self):
        listing = decode_package_listing({"packages": [{"id": "p1"}]})

        assert listing.source == "packages"
        assert listing.packages == [{"id": "p1"}]
        assert listing.is_empty is False

    def test_results_array(self):
        listing = decode_package_listing({"results": [{"id": "p1"}, {"id": "p2"}]})

        assert listing.source == "results"
        assert len(listing.packages) == 2

    def test_packages_preferred_over_results(self):
        listing = decode_package_listing({"packages": [{"id": "a"}], "results": [{"id": "b"}]})

        assert listing.packages == [{"id": "a"}]

    @pytest.mark.parametrize(
        "payload",
        [{}, {"count": 3}, {"packages": "nope"}, [], None, "text"],
    )
    def test_empty_variants(self, payload):
        listing = decode_package_listing(payload)

        assert listing.is_empty is True
        assert listing.packages == []

    def test_non_object_entries_dropped(self):
        listing = decode_package_listing({"packages": [{"id": "p1"}, "junk", 7]})

        assert listing.packages == [{"id": "p1"}]


class TestTransactionRecord:
    """Transaction serialization and history."""

    def test_from_dict_keeps_unknown_keys(self):
        data = {
            "id": "p1",
            "name": "Lease",
            "status": "SENT",
            "created": "2024-03-01T12:00:00.000Z",
            "updated": "2024-03-01T12:00:00.000Z",
            "signers": [{"id": "r1", "name": "Ada", "email": "ada@example.com", "role": "r1"}],
            "documents": [{"id": "d1", "name": "Lease.pdf", "size": 10}],
            "history": [{"action": "CREATE", "timestamp": "t", "details": "Transaction created"}],
            "apiData": {"id": "p1"},
            "notes": "kept as-is",
        }

        transaction = Transaction.from_dict(data)

        assert transaction.extra == {"notes": "kept as-is"}
        assert transaction.signers[0].role == "r1"
        assert transaction.to_dict() == {
            **data,
            "signers": [
                {
                    "id": "r1",
                    "name": "Ada",
                    "email": "ada@example.com",
                    "status": "PENDING",
                    "role": "r1",
                }
            ],
            "documents": [
                {"id": "d1", "name": "Lease.pdf", "type": "application/pdf", "size": 10}
            ],
        }

    def test_record_appends_history_and_bumps_updated(self):
        transaction = Transaction(
            id="p1", name="Lease", status="CREATED", created="t0", updated="t0"
        )

        transaction.record(HistoryAction.CANCEL, "Transaction canceled", "t1")
        transaction.record("CUSTOM", "Something else", "t2")

        assert [h.action for h in transaction.history] == ["CANCEL", "CUSTOM"]
        assert transaction.updated == "t2"

    def test_find_helpers(self):
        transaction = Transaction(
            id="p1",
            name="Lease",
            status="SENT",
            created="t0",
            updated="t0",
            signers=[Signer(id="s1", name="Ada", email="ada@example.com", role="r1")],
        )

        assert transaction.find_signer_by_role("r1") is transaction.signers[0]
        assert transaction.find_signer_by_role("s1") is transaction.signers[0]
        assert transaction.find_signer_by_email("ada@example.com") is transaction.signers[0]
        assert transaction.find_signer_by_email("bob@example.com") is None
        assert transaction.find_document("d1") is None
