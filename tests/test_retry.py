# CUI // SP-CTI
"""Tests for idempiere_cli.resilience.retry."""
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from unittest.mock import patch, MagicMock

import pytest

from idempiere_cli.resilience.retry import (
    backoff_delay,
    is_retryable,
    parse_retry_after,
    send_with_retry,
)


def _response(status, headers=None):
    resp = MagicMock()
    resp.status_code = status
    resp.headers = headers or {}
    return resp


# ---------------------------------------------------------------------------
# backoff_delay / is_retryable / parse_retry_after
# ---------------------------------------------------------------------------
class TestBackoffDelay:
    """Tests for the backoff_delay helper."""

    def test_doubles_per_attempt(self):
        assert backoff_delay(0) == 1.0
        assert backoff_delay(1) == 2.0
        assert backoff_delay(2) == 4.0

    def test_respects_max_delay_cap(self):
        assert backoff_delay(attempt=20, base_delay=1.0, max_delay=5.0) == 5.0

    def test_custom_base(self):
        assert backoff_delay(attempt=1, base_delay=0.5) == 1.0


class TestIsRetryable:

    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
    def test_retryable(self, status):
        assert is_retryable(status) is True

    @pytest.mark.parametrize("status", [200, 201, 400, 401, 403, 404])
    def test_not_retryable(self, status):
        assert is_retryable(status) is False


class TestParseRetryAfter:

    def test_seconds(self):
        assert parse_retry_after("5") == 5.0

    def test_missing(self):
        assert parse_retry_after(None) is None

    def test_http_date_ignored(self):
        assert parse_retry_after("Wed, 21 Oct 2015 07:28:00 GMT") is None

    def test_negative_ignored(self):
        assert parse_retry_after("-3") is None


# ---------------------------------------------------------------------------
# send_with_retry
# ---------------------------------------------------------------------------
class TestSendWithRetry:
    """Tests for the shared provider retry helper."""

    @patch("idempiere_cli.resilience.retry.time.sleep")
    def test_success_on_first_try(self, mock_sleep):
        ok = _response(200)
        send = MagicMock(return_value=ok)
        assert send_with_retry(send) is ok
        assert send.call_count == 1
        mock_sleep.assert_not_called()

    @patch("idempiere_cli.resilience.retry.time.sleep")
    def test_persistent_503_gets_exactly_three_attempts(self, mock_sleep):
        responses = [_response(503), _response(503), _response(503)]
        send = MagicMock(side_effect=responses)
        result = send_with_retry(send)
        assert send.call_count == 3
        assert result is responses[-1]
        assert result.status_code == 503
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    @patch("idempiere_cli.resilience.retry.time.sleep")
    def test_recovers_after_rate_limit(self, mock_sleep):
        ok = _response(200)
        send = MagicMock(side_effect=[_response(429), ok])
        assert send_with_retry(send) is ok
        assert send.call_count == 2
        mock_sleep.assert_called_once_with(1.0)

    @patch("idempiere_cli.resilience.retry.time.sleep")
    def test_client_error_returned_without_retry(self, mock_sleep):
        bad = _response(400)
        send = MagicMock(return_value=bad)
        assert send_with_retry(send) is bad
        assert send.call_count == 1
        mock_sleep.assert_not_called()

    @patch("idempiere_cli.resilience.retry.time.sleep")
    def test_larger_retry_after_wins(self, mock_sleep):
        send = MagicMock(side_effect=[_response(429, {"retry-after": "7"}), _response(200)])
        send_with_retry(send)
        mock_sleep.assert_called_once_with(7.0)

    @patch("idempiere_cli.resilience.retry.time.sleep")
    def test_smaller_retry_after_ignored(self, mock_sleep):
        send = MagicMock(side_effect=[
            _response(503),
            _response(503, {"retry-after": "0"}),
            _response(200),
        ])
        send_with_retry(send)
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    @patch("idempiere_cli.resilience.retry.time.sleep")
    def test_on_retry_callback(self, mock_sleep):
        seen = []
        send = MagicMock(side_effect=[_response(500), _response(200)])
        send_with_retry(send, on_retry=lambda a, s, d: seen.append((a, s, d)))
        assert seen == [(0, 500, 1.0)]

    @patch("idempiere_cli.resilience.retry.time.sleep")
    def test_network_exception_propagates(self, mock_sleep):
        send = MagicMock(side_effect=ConnectionError("refused"))
        with pytest.raises(ConnectionError):
            send_with_retry(send)
        assert send.call_count == 1
