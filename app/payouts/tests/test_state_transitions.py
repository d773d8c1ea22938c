"""
Tests for payout state machine transitions using django-fsm.

Tests valid and invalid transitions for Payout and PayoutBatch.
"""

import pytest
from django_fsm import TransitionNotAllowed

from payouts.state_machines import TERMINAL_PAYOUT_STATUSES, PayoutBatchStatus, PayoutStatus
from payouts.tests.factories import PayoutBatchFactory, PayoutFactory


# =============================================================================
# Payout State Transition Tests
# =============================================================================


class TestPayoutTransitions:
    """Tests for Payout state machine transitions."""

    # -------------------------------------------------------------------------
    # Valid Transitions
    # -------------------------------------------------------------------------

    def test_pending_to_funded(self, db):
        """Should transition from pending to funded."""
        payout = PayoutFactory(status=PayoutStatus.PENDING)

        payout.fund()
        payout.save()

        assert payout.status == PayoutStatus.FUNDED
        assert payout.funded_at is not None

    def test_funded_to_sent(self, db):
        payout = PayoutFactory(status=PayoutStatus.FUNDED)

        payout.send()
        payout.save()

        assert payout.status == PayoutStatus.SENT

    def test_pending_to_sent_without_funding(self, db):
        """Externally funded payouts skip FUNDED."""
        payout = PayoutFactory(status=PayoutStatus.PENDING)

        payout.send()
        payout.save()

        assert payout.status == PayoutStatus.SENT
        assert payout.funded_at is None

    def test_sent_to_claimed(self, db):
        """Should record the delivery wallet and signature."""
        payout = PayoutFactory()

        payout.claim(recipient_wallet="RecipientWallet", tx_signature="sig_claim")
        payout.save()

        assert payout.status == PayoutStatus.CLAIMED
        assert payout.recipient_wallet == "RecipientWallet"
        assert payout.tx_signature == "sig_claim"
        assert payout.claimed_at is not None

    def test_sent_to_expired(self, db):
        payout = PayoutFactory()

        payout.expire()
        payout.save()

        assert payout.status == PayoutStatus.EXPIRED
        assert payout.expired_at is not None

    @pytest.mark.parametrize(
        "source", [PayoutStatus.PENDING, PayoutStatus.FUNDED, PayoutStatus.SENT]
    )
    def test_to_failed(self, db, source):
        payout = PayoutFactory(status=source)

        payout.fail(reason="Delivery rejected")
        payout.save()

        assert payout.status == PayoutStatus.FAILED
        assert payout.failed_at is not None
        assert payout.failure_reason == "Delivery rejected"

    # -------------------------------------------------------------------------
    # Invalid Transitions
    # -------------------------------------------------------------------------

    def test_cannot_claim_twice(self, db):
        payout = PayoutFactory(status=PayoutStatus.CLAIMED)

        with pytest.raises(TransitionNotAllowed):
            payout.claim(recipient_wallet="Other", tx_signature="sig_other")

    def test_cannot_claim_pending(self, db):
        payout = PayoutFactory(status=PayoutStatus.PENDING)

        with pytest.raises(TransitionNotAllowed):
            payout.claim()

    def test_cannot_expire_claimed(self, db):
        payout = PayoutFactory(status=PayoutStatus.CLAIMED)

        with pytest.raises(TransitionNotAllowed):
            payout.expire()

    def test_cannot_fund_sent(self, db):
        payout = PayoutFactory()

        with pytest.raises(TransitionNotAllowed):
            payout.fund()

    @pytest.mark.parametrize("terminal", sorted(TERMINAL_PAYOUT_STATUSES))
    def test_terminal_states_cannot_fail(self, db, terminal):
        if terminal == PayoutStatus.FAILED:
            pytest.skip("FAILED -> FAILED is handled by the service")
        payout = PayoutFactory(status=terminal)

        with pytest.raises(TransitionNotAllowed):
            payout.fail()

    def test_status_cannot_be_assigned_directly(self, db):
        """FSMField is protected; only transitions change it."""
        payout = PayoutFactory()

        with pytest.raises(AttributeError):
            payout.status = PayoutStatus.CLAIMED


# =============================================================================
# PayoutBatch State Transition Tests
# =============================================================================


class TestPayoutBatchTransitions:
    def test_complete(self, db):
        batch = PayoutBatchFactory()

        batch.complete()
        batch.save()

        assert batch.status == PayoutBatchStatus.COMPLETED
        assert batch.completed_at is not None

    def test_mark_partial(self, db):
        batch = PayoutBatchFactory()

        batch.mark_partial()

        assert batch.status == PayoutBatchStatus.PARTIAL

    def test_mark_failed(self, db):
        batch = PayoutBatchFactory()

        batch.mark_failed()

        assert batch.status == PayoutBatchStatus.FAILED

    def test_finalized_batch_cannot_change(self, db):
        batch = PayoutBatchFactory()
        batch.complete()
        batch.save()

        with pytest.raises(TransitionNotAllowed):
            batch.mark_failed()
