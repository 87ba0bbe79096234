"""Tests for transaction fingerprinting and deduplication logic."""

import re

import pytest
from datetime import date
from decimal import Decimal

from ledgerline.services.deduplication_service import (
    generate_fingerprint_hash,
    generate_transaction_fingerprint,
    hash_fingerprint,
    find_existing_hashes,
    is_duplicate,
)


class TestTransactionFingerprint:
    """Test fingerprint construction."""

    def test_layout(self):
        fingerprint = generate_transaction_fingerprint(
            date(2024, 1, 15),
            Decimal("-15.99"),
            "NETFLIX.COM 8885551234",
        )
        assert fingerprint == "20240115_1599_NETFLIX_COM_default"

    def test_account_included(self):
        fingerprint = generate_transaction_fingerprint(
            date(2024, 1, 15),
            Decimal("-15.99"),
            "NETFLIX.COM",
            "account-123"
        )
        assert fingerprint.endswith("_account-123")

    def test_string_date_matches_date(self):
        assert generate_transaction_fingerprint(
            "2024-01-15", Decimal("10"), "AMAZON"
        ) == generate_transaction_fingerprint(
            date(2024, 1, 15), Decimal("10"), "AMAZON"
        )

    def test_same_inputs_same_fingerprint(self):
        first = generate_transaction_fingerprint(date(2024, 1, 15), Decimal("-50.00"), "AMAZON", "acc")
        second = generate_transaction_fingerprint(date(2024, 1, 15), Decimal("-50.00"), "AMAZON", "acc")
        assert first == second

    def test_sign_ignored(self):
        """Debit and credit renderings of the same charge collide on purpose."""
        debit = generate_transaction_fingerprint(date(2024, 1, 15), Decimal("-42.10"), "COMCAST")
        credit = generate_transaction_fingerprint(date(2024, 1, 15), Decimal("42.10"), "COMCAST")
        assert debit == credit

    def test_rounds_half_away_from_zero(self):
        assert "_1013_" in generate_transaction_fingerprint(date(2024, 1, 1), Decimal("10.125"), "X")
        assert "_1013_" in generate_transaction_fingerprint(date(2024, 1, 1), Decimal("-10.125"), "X")

    def test_float_amount(self):
        assert "_1599_" in generate_transaction_fingerprint(date(2024, 1, 1), 15.99, "X")

    def test_different_date_different_fingerprint(self):
        assert generate_transaction_fingerprint(
            date(2024, 1, 15), Decimal("-50.00"), "AMAZON"
        ) != generate_transaction_fingerprint(
            date(2024, 1, 16), Decimal("-50.00"), "AMAZON"
        )

    def test_different_account_different_fingerprint(self):
        assert generate_transaction_fingerprint(
            date(2024, 1, 15), Decimal("-50.00"), "AMAZON", "account-123"
        ) != generate_transaction_fingerprint(
            date(2024, 1, 15), Decimal("-50.00"), "AMAZON", "account-456"
        )

    def test_description_noise_ignored(self):
        """Reference numbers do not split one merchant into several."""
        assert generate_transaction_fingerprint(
            date(2024, 1, 15), Decimal("9.99"), "SPOTIFY 123456789"
        ) == generate_transaction_fingerprint(
            date(2024, 1, 15), Decimal("9.99"), "spotify 987654321"
        )

    def test_truncated_to_255(self):
        fingerprint = generate_transaction_fingerprint(
            date(2024, 1, 15), Decimal("1"), "AMAZON", "a" * 400
        )
        assert len(fingerprint) == 255


class TestFingerprintHash:
    """Test the short fingerprint digest."""

    def test_known_values(self):
        assert hash_fingerprint("") == "0"
        assert hash_fingerprint("a") == "2p"
        assert hash_fingerprint("ab") == "2e9"

    def test_base36_and_short(self):
        digest = hash_fingerprint("20240115_1599_NETFLIX_COM_default")
        assert re.fullmatch(r"[0-9a-z]+", digest)
        assert len(digest) <= 6

    def test_stable(self):
        token = "20240115_1599_NETFLIX_COM_default"
        assert hash_fingerprint(token) == hash_fingerprint(token)

    def test_wide_digest(self):
        digest = hash_fingerprint("20240115_1599_NETFLIX_COM_default", algorithm="sha256")
        assert re.fullmatch(r"[0-9a-f]{16}", digest)

    def test_unknown_algorithm(self):
        with pytest.raises(ValueError):
            hash_fingerprint("x", algorithm="md5")

    def test_generate_fingerprint_hash(self):
        fingerprint = generate_transaction_fingerprint(date(2024, 1, 15), Decimal("5"), "X")
        assert generate_fingerprint_hash(date(2024, 1, 15), Decimal("5"), "X") == hash_fingerprint(fingerprint)


class TestExistingHashes:
    """Test duplicate detection in database."""

    def test_no_duplicate_empty_db(self, db_session, user_id):
        assert is_duplicate(db_session, user_id, "somehash123") is False

    def test_finds_duplicate(self, db_session, user_id, make_transaction):
        txn = make_transaction()
        assert is_duplicate(db_session, user_id, txn.fingerprint_hash) is True

    def test_scoped_to_user(self, db_session, make_transaction):
        txn = make_transaction(owner="someone-else")
        assert is_duplicate(db_session, "user-1", txn.fingerprint_hash) is False

    def test_batched_lookup_unions_results(self, db_session, user_id, make_transaction):
        stored = [
            make_transaction(posted_date=date(2024, 1, day)).fingerprint_hash
            for day in range(1, 6)
        ]
        existing = find_existing_hashes(
            db_session, user_id, stored + ["missing-1", "missing-2"], batch_size=2
        )
        assert existing == set(stored)

    def test_invalid_batch_size(self, db_session, user_id):
        with pytest.raises(ValueError):
            find_existing_hashes(db_session, user_id, ["x"], batch_size=0)
