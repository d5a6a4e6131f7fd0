import asyncio

import httpx
import pytest

from llmfailover.models import FailureType
from llmfailover.routing.error_classifier import (
    categorize_error,
    extract_error_message,
    extract_status_code,
)


class StatusError(Exception):
    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.status = status


@pytest.mark.parametrize(
    "error, expected",
    [
        ({"status": 429}, FailureType.RATE_LIMIT),
        ({"status": 401}, FailureType.AUTH),
        ({"statusCode": 402}, FailureType.BILLING),
        (StatusError("boom", 429), FailureType.RATE_LIMIT),
        (Exception("Invalid API key provided"), FailureType.AUTH),
        (Exception("Request unauthorized"), FailureType.AUTH),
        (Exception("Too Many Requests"), FailureType.RATE_LIMIT),
        (Exception("monthly quota exceeded"), FailureType.RATE_LIMIT),
        (Exception("Insufficient credit balance"), FailureType.BILLING),
        (Exception("socket hang up"), FailureType.TIMEOUT),
        (Exception("connect ETIMEDOUT 1.2.3.4:443"), FailureType.TIMEOUT),
        (Exception("model overloaded"), FailureType.UNKNOWN),
        ({"message": "something odd"}, FailureType.UNKNOWN),
        ({"message": "Invalid API key"}, FailureType.AUTH),
        ({"message": "socket hang up"}, FailureType.TIMEOUT),
    ],
)
def test_categorize_error(error, expected):
    assert categorize_error(error) == expected


def test_status_wins_over_message():
    assert categorize_error(StatusError("Invalid API key", 429)) == FailureType.RATE_LIMIT


def test_unmapped_status_falls_through_to_message():
    assert categorize_error(StatusError("rate limit reached", 500)) == FailureType.RATE_LIMIT


def test_timeout_exception_types():
    assert categorize_error(asyncio.TimeoutError()) == FailureType.TIMEOUT
    assert categorize_error(httpx.ReadTimeout("read timed out")) == FailureType.TIMEOUT


def test_status_from_httpx_response():
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(429, request=request, text="slow down")
    error = httpx.HTTPStatusError("slow down", request=request, response=response)

    assert extract_status_code(error) == 429
    assert categorize_error(error) == FailureType.RATE_LIMIT


def test_bool_status_is_ignored():
    assert extract_status_code({"status": True}) is None


def test_extract_error_message_unwraps_json():
    raw = '{"error": {"message": "Incorrect API key provided", "type": "invalid_request_error"}}'
    assert extract_error_message(Exception(raw)) == "Incorrect API key provided"
    assert extract_error_message({"message": "plain"}) == "plain"
    assert extract_error_message(None) == ""
