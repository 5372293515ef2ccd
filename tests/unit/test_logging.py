"""Tests for the structured logging helpers."""

from datetime import datetime, timezone
from unittest.mock import Mock

from dca_app.logging.config import log_purchase_outcome, log_state_transition
from dca_app.models.purchase import PurchaseAttempt

NOW = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


class TestStateTransitionLogging:
    """log_state_transition binds the transition fields."""

    def setup_method(self):
        self.logger = Mock()
        self.bound = self.logger.bind.return_value

    def test_transition_fields(self):
        log_state_transition(self.logger, "stopped", "running", "start")

        self.logger.bind.assert_called_once_with(from_state="stopped", to_state="running", trigger="start")
        self.bound.info.assert_called_once_with("State transition")

    def test_context_is_bound(self):
        log_state_transition(self.logger, "running", "stopped", "stop", {"schedule": "every 1 minute"})

        self.bound.bind.assert_called_once_with(context={"schedule": "every 1 minute"})
        self.bound.bind.return_value.info.assert_called_once_with("State transition")


class TestPurchaseOutcomeLogging:
    """log_purchase_outcome picks the level from the attempt status."""

    def setup_method(self):
        self.logger = Mock()
        self.bound = self.logger.bind.return_value

    def test_success_logged_at_info(self):
        log_purchase_outcome(self.logger, PurchaseAttempt.succeeded(NOW, 20.0, 0.0005, 40000.0, "1"))

        assert self.logger.bind.call_args.kwargs["status"] == "success"
        self.bound.info.assert_called_once_with("Purchase succeeded")
        self.bound.warning.assert_not_called()

    def test_failure_logged_at_warning(self):
        log_purchase_outcome(self.logger, PurchaseAttempt.failed(NOW, 20.0, "insufficient balance"))

        self.bound.warning.assert_called_once_with("Purchase failed", failure_reason="insufficient balance")
        self.bound.info.assert_not_called()
