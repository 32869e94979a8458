"""Tests for TransferScheduler."""
import asyncio
from unittest.mock import Mock

import pytest

from securetransfer.core.scheduler import TransferScheduler


async def succeed(value):
    await asyncio.sleep(0)
    return value


async def fail(error):
    await asyncio.sleep(0)
    raise error


class TestTransferScheduler:
    """Test suite for TransferScheduler."""

    @pytest.mark.asyncio
    async def test_completion_with_result(self):
        """Test completion receives (result, None) once."""
        scheduler = TransferScheduler()
        completion = Mock()

        scheduler.submit(succeed("url"), completion)
        await scheduler.drain()

        completion.assert_called_once_with("url", None)

    @pytest.mark.asyncio
    async def test_completion_with_error(self):
        """Test completion receives (None, error) once."""
        scheduler = TransferScheduler()
        completion = Mock()
        error = RuntimeError("boom")

        scheduler.submit(fail(error), completion)
        await scheduler.drain()

        completion.assert_called_once_with(None, error)

    @pytest.mark.asyncio
    async def test_completion_is_not_inline(self):
        """Test completion runs after the task, posted to the loop."""
        scheduler = TransferScheduler()
        completion = Mock()

        task = scheduler.submit(succeed(1), completion)
        await task

        completion.assert_not_called()
        await asyncio.sleep(0)
        completion.assert_called_once_with(1, None)

    @pytest.mark.asyncio
    async def test_completion_error_is_contained(self):
        """Test a raising completion does not affect other requests."""
        scheduler = TransferScheduler()
        other = Mock()

        scheduler.submit(succeed(1), Mock(side_effect=ValueError("bad handler")))
        scheduler.submit(succeed(2), other)
        await scheduler.drain()

        other.assert_called_once_with(2, None)

    @pytest.mark.asyncio
    async def test_explicit_callback_loop(self):
        """Test completions go to the configured loop."""
        loop = asyncio.get_running_loop()
        scheduler = TransferScheduler(callback_loop=loop)
        completion = Mock()

        scheduler.submit(succeed("x"), completion, name="upload:x")
        await scheduler.drain()

        completion.assert_called_once_with("x", None)

    @pytest.mark.asyncio
    async def test_active_count(self):
        scheduler = TransferScheduler()

        scheduler.submit(succeed(1))
        scheduler.submit(fail(RuntimeError("x")))
        assert scheduler.active_count == 2

        await scheduler.drain()

        assert scheduler.active_count == 0
