"""
Tests for the operator logging setup.
"""

import json
import logging
import sys
from unittest.mock import MagicMock, Mock, patch

from spi_operator.context.reconcile_context import ReconcileContext, reconcile_scope
from spi_operator.runtime.reconciler import Request
from spi_operator.utils.logger import (
    AzureQueueHandler,
    ContextAwareLogger,
    ReconcileContextFilter,
    configure_logging,
    get_logger,
)


def make_record(msg="message", **extra):
    record = logging.LogRecord("operator.test", logging.INFO, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestContextAwareLogger:
    def test_extras_are_appended_to_message(self):
        inner = Mock()
        logger = ContextAwareLogger(inner)

        logger.info("Status updated", extra={"phase": "Ready", "object": "t"})

        inner.info.assert_called_once_with(
            "Status updated | phase=Ready | object=t", extra={"phase": "Ready", "object": "t"}
        )

    def test_plain_message(self):
        inner = Mock()

        ContextAwareLogger(inner).warning("plain")

        inner.warning.assert_called_once_with("plain", extra={})

    def test_exc_info_is_passed_through(self):
        inner = Mock()

        ContextAwareLogger(inner).error("failed", exc_info=True)

        assert inner.error.call_args.kwargs["exc_info"] is True


class TestReconcileContextFilter:
    def test_stamps_active_reconcile(self):
        ctx = ReconcileContext("spiaccesstoken", Request(namespace="default", name="t"))
        record = make_record()

        with reconcile_scope(ctx):
            assert ReconcileContextFilter().filter(record)

        assert record.controller == "spiaccesstoken"
        assert record.resource == "default/t"
        assert record.reconcile_id == ctx.reconcile_id

    def test_no_active_reconcile(self):
        record = make_record()

        assert ReconcileContextFilter().filter(record)
        assert not hasattr(record, "reconcile_id")


class TestAzureQueueHandler:
    def test_without_connection_string(self):
        handler = AzureQueueHandler(connection_string="")
        handler.connection_string = None

        handler.emit(make_record())
        handler.flush()

        assert len(handler.log_buffer) == 1

    @patch("spi_operator.utils.logger.QueueClient")
    @patch("spi_operator.utils.logger.QueueServiceClient")
    def test_batches_are_sent(self, service_client, queue_client):
        service_client.from_connection_string.return_value.list_queues.return_value = []
        sender = MagicMock()
        queue_client.from_connection_string.return_value = sender

        handler = AzureQueueHandler(queue_name="logs", connection_string="UseDevelopmentStorage=true", batch_size=2)
        handler.emit(make_record("first", token="default/t"))
        sender.send_message.assert_not_called()
        handler.emit(make_record("second"))

        assert sender.send_message.call_count == 2
        entry = json.loads(sender.send_message.call_args_list[0].args[0])
        assert entry["message"] == "first"
        assert entry["level"] == "INFO"
        assert entry["context"]["token"] == "default/t"
        assert handler.log_buffer == []
        service_client.from_connection_string.return_value.create_queue.assert_called_once_with("logs")

    def test_exception_is_recorded(self):
        handler = AzureQueueHandler(connection_string="")
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()

        entry = handler.build_entry(record)

        assert entry["exception"]["type"] == "ValueError"
        assert entry["exception"]["message"] == "boom"


class TestConfigureLogging:
    def test_configured_logger_is_returned_by_get_logger(self, app_config):
        logger = configure_logging("test-operator", log_level="DEBUG", enable_queue=False)

        assert get_logger() is logger
        assert logger.logger.name == "operator.test-operator"
        assert logger.logger.level == logging.DEBUG
        assert len(logger.logger.handlers) == 1
        assert any(isinstance(f, ReconcileContextFilter) for f in logger.logger.handlers[0].filters)

    def test_reconfiguring_replaces_handlers(self, app_config):
        configure_logging("test-operator", enable_queue=False)
        logger = configure_logging("test-operator", enable_queue=False)

        assert len(logger.logger.handlers) == 1

    def test_fallback_to_root_logger(self):
        assert get_logger().logger is logging.getLogger()
