import pytest

from payment_webhooks.lifecycle import EventDispatcher, PaymentApproved, PaymentRejected
from payment_webhooks.utils.factories import PaymentFactory


class TestEventDispatcher:
    """Tests for synchronous event delivery."""

    @pytest.mark.unit
    def test_subscribers_filtered_by_type(self):
        dispatcher = EventDispatcher()
        approved, everything = [], []
        dispatcher.subscribe(approved.append, PaymentApproved)
        dispatcher.subscribe(everything.append)

        dispatcher.dispatch(PaymentApproved(payment=PaymentFactory.create()))
        dispatcher.dispatch(PaymentRejected(payment=PaymentFactory.create(), reason="Invalid amount!"))

        assert len(approved) == 1
        assert len(everything) == 2

    @pytest.mark.unit
    def test_failing_subscriber_does_not_stop_others(self):
        dispatcher = EventDispatcher()
        received = []

        def broken(event):
            raise RuntimeError("mailer down")

        dispatcher.subscribe(broken)
        dispatcher.subscribe(received.append)
        dispatcher.dispatch(PaymentApproved(payment=PaymentFactory.create()))

        assert len(received) == 1
        assert len(dispatcher.get_dispatched(PaymentApproved)) == 1

    @pytest.mark.unit
    def test_clear(self):
        dispatcher = EventDispatcher()
        dispatcher.dispatch(PaymentApproved(payment=PaymentFactory.create()))
        dispatcher.clear()
        assert dispatcher.get_dispatched() == []

    @pytest.mark.unit
    def test_history_keeps_latest_events(self):
        dispatcher = EventDispatcher(history=3)
        payments = [PaymentFactory.create() for _ in range(5)]
        for payment in payments:
            dispatcher.dispatch(PaymentApproved(payment=payment))

        kept = [event.payment.payment_id for event in dispatcher.get_dispatched()]
        assert kept == [payment.payment_id for payment in payments[2:]]
