import logging
from unittest.mock import MagicMock

from hostel_ledger.core.logging import LoggerAdapter, get_logger


class TestLoggerAdapter:
    """Tests for context carried by LoggerAdapter"""

    def test_context_is_merged_into_extra(self):
        target = MagicMock()
        adapter = LoggerAdapter(target).add_context(service="PaymentService")

        adapter.warning("apply payment rejected", extra={"operation": "apply payment"})

        target.log.assert_called_once_with(
            logging.WARNING,
            "apply payment rejected",
            extra={"operation": "apply payment", "service": "PaymentService"},
        )

    def test_names_are_namespaced(self):
        assert get_logger("OccupantService").logger.name == "hostel_ledger.OccupantService"
        assert get_logger().logger.name == "hostel_ledger"

    def test_services_tag_their_log_records(self, occupant_service):
        assert occupant_service._logger._context == {"service": "OccupantService"}
