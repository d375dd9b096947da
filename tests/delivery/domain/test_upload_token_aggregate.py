from datetime import UTC, datetime, timedelta

import pytest
from protean.exceptions import ValidationError

from delivery.token.token import UploadToken

TOKEN = "a" * 43


@pytest.fixture
def token():
    return UploadToken.issue(TOKEN, "order-1")


class TestIssue:
    def test_new_token_is_unused(self, token):
        assert token.token == TOKEN
        assert token.order_id == "order-1"
        assert token.used is False
        assert token.used_at is None
        assert token.file_names == []
        assert token.claimed_at is None


class TestClaim:
    def test_claim_sets_marker(self, token):
        now = datetime.now(UTC)
        token.claim(now, 900)
        assert token.claimed_at == now
        assert token.is_claimed(now + timedelta(seconds=10), 900)

    def test_second_claim_is_rejected(self, token):
        now = datetime.now(UTC)
        token.claim(now, 900)
        with pytest.raises(ValidationError):
            token.claim(now + timedelta(seconds=1), 900)

    def test_stale_claim_can_be_taken_over(self, token):
        now = datetime.now(UTC)
        token.claim(now - timedelta(seconds=901), 900)
        token.claim(now, 900)
        assert token.claimed_at == now

    def test_release(self, token):
        now = datetime.now(UTC)
        token.claim(now, 900)
        token.release()
        assert not token.is_claimed(now, 900)

    def test_used_token_cannot_be_claimed(self, token):
        token.mark_used([])
        with pytest.raises(ValidationError):
            token.claim(datetime.now(UTC), 900)


class TestMarkUsed:
    def test_records_files_and_clears_claim(self, token):
        token.claim(datetime.now(UTC), 900)
        token.mark_used(["doc.pdf"])

        assert token.used is True
        assert token.used_at is not None
        assert token.file_names == ["doc.pdf"]
        assert token.claimed_at is None

    def test_idempotent(self, token):
        token.mark_used(["first.pdf"])
        first_used_at = token.used_at
        token.mark_used(["second.pdf"])

        assert token.file_names == ["first.pdf"]
        assert token.used_at == first_used_at
