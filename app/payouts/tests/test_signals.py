"""
Tests for payout lifecycle signals.

Signals are sent from transaction.on_commit, so each test captures and
runs the on-commit callbacks.
"""

from datetime import timedelta

import pytest
from freezegun import freeze_time

from payouts.services import PayoutLifecycle
from payouts.signals import payout_claimed, payout_expired, payout_failed


@pytest.fixture
def capture_signal():
    """Connect a recording receiver to a signal for the duration of a test."""
    connected = []

    def _capture(signal):
        received = []

        def receiver(sender, payout, **kwargs):
            received.append(payout.id)

        signal.connect(receiver, weak=False)
        connected.append((signal, receiver))
        return received

    yield _capture

    for signal, receiver in connected:
        signal.disconnect(receiver)


class TestPayoutSignals:
    def test_claimed(self, db, sent_payout, capture_signal, django_capture_on_commit_callbacks):
        received = capture_signal(payout_claimed)

        with django_capture_on_commit_callbacks(execute=True):
            PayoutLifecycle.settle_payout(sent_payout.claim_token, "W", "sig")

        assert received == [sent_payout.id]

    def test_rejected_claim_sends_nothing(
        self, db, sent_payout, capture_signal, django_capture_on_commit_callbacks
    ):
        PayoutLifecycle.settle_payout(sent_payout.claim_token, "W", "sig")
        received = capture_signal(payout_claimed)

        with django_capture_on_commit_callbacks(execute=True):
            PayoutLifecycle.settle_payout(sent_payout.claim_token, "W", "sig")

        assert received == []

    def test_expired(self, db, sent_payout, capture_signal, django_capture_on_commit_callbacks):
        received = capture_signal(payout_expired)

        with freeze_time(sent_payout.expires_at + timedelta(minutes=1)):
            with django_capture_on_commit_callbacks(execute=True):
                PayoutLifecycle.expire_overdue_payouts()

        assert received == [sent_payout.id]

    def test_failed(self, db, sent_payout, capture_signal, django_capture_on_commit_callbacks):
        received = capture_signal(payout_failed)

        with django_capture_on_commit_callbacks(execute=True):
            PayoutLifecycle.fail_payout(sent_payout.id, reason="Bounced")

        assert received == [sent_payout.id]

    def test_not_sent_before_commit(
        self, db, sent_payout, capture_signal, django_capture_on_commit_callbacks
    ):
        received = capture_signal(payout_failed)

        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            PayoutLifecycle.fail_payout(sent_payout.id)

        assert received == []
        assert len(callbacks) == 1
