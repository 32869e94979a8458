"""Tests for logging helpers, events and the error hierarchy."""
import logging
from unittest.mock import Mock

import pytest

import securetransfer
from securetransfer.core.events import EventEmitter
from securetransfer.core.exceptions import (
    CryptoError,
    ExceedsMaxSizeError,
    FileTransferError,
    NoServersError,
    NoSlotError,
    ServerError,
    TransferErrorKind,
    UnknownTransferError,
)
from securetransfer.core.logging import get_logger


class TestLogging:
    """Test suite for logger helpers."""

    def test_get_logger_propagates(self):
        logger = get_logger('securetransfer.test')

        assert logger.name == 'securetransfer.test'
        assert logger.propagate

    def test_setup_logging_sets_levels(self):
        securetransfer.setup_logging(logging.DEBUG)

        assert logging.getLogger('securetransfer.upload.coordinator').level == logging.DEBUG
        assert logging.getLogger('securetransfer.download.coordinator').level == logging.DEBUG

        securetransfer.setup_logging(logging.WARNING)

    def test_key_material_not_logged(self, caplog, envelope_bytes):
        """Test encrypted link building does not log the key."""
        from securetransfer.core.urls import embed_key

        key, iv = envelope_bytes
        with caplog.at_level(logging.DEBUG, logger='securetransfer'):
            embed_key('https://h.example.com/a', iv, key)

        assert key.hex() not in caplog.text


class TestEventEmitter:
    """Test suite for EventEmitter."""

    def test_on_emit(self):
        emitter = EventEmitter()
        handler = Mock()
        emitter.on('changed', handler)

        emitter.emit('changed', 1, kind='x')

        handler.assert_called_once_with(1, kind='x')

    def test_failing_handler_isolated(self):
        """Test a failing handler does not stop the next one."""
        emitter = EventEmitter()
        second = Mock()
        emitter.on('changed', Mock(side_effect=RuntimeError("boom")))
        emitter.on('changed', second)

        emitter.emit('changed')

        second.assert_called_once()

    def test_off(self):
        emitter = EventEmitter()
        handler = Mock()
        emitter.on('changed', handler).on('changed', Mock())

        emitter.off('changed', handler)
        assert emitter.listener_count('changed') == 1

        emitter.off('changed')
        assert emitter.listener_count('changed') == 0


class TestExceptions:
    """Test suite for the error hierarchy."""

    @pytest.mark.parametrize('error, kind', [
        (NoServersError("x"), TransferErrorKind.NO_SERVERS),
        (ServerError("x", status=500), TransferErrorKind.SERVER_ERROR),
        (NoSlotError("x"), TransferErrorKind.SERVER_ERROR),
        (ExceedsMaxSizeError(2, 1), TransferErrorKind.EXCEEDS_MAX_SIZE),
        (CryptoError("x"), TransferErrorKind.CRYPTO),
        (UnknownTransferError("x"), TransferErrorKind.UNKNOWN),
    ])
    def test_kinds(self, error, kind):
        assert isinstance(error, FileTransferError)
        assert error.kind == kind

    def test_cause(self):
        cause = OSError("disk")

        assert UnknownTransferError("x", cause=cause).cause is cause
