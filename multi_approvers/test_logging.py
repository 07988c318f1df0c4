import logging
from typing import Any

import httpx
import pytest

from multi_approvers.logging import (
    SentryLevel,
    SentryProcessor,
    add_request_info_processor,
    get_logging_level,
)


def test_sentry_sent() -> None:
    processor = SentryProcessor()
    event_dict = processor(None, "error", {})
    assert "sentry_id" in event_dict


@pytest.mark.parametrize("level", ["debug", "info", "warning"])
def test_sentry_log(mocker: Any, level: SentryLevel) -> None:
    m_capture_event = mocker.patch("multi_approvers.logging.capture_event")

    event_data = {"event": level + " message"}
    sentry_event_data = event_data.copy()
    processor = SentryProcessor(level=getattr(logging, level.upper()))
    processor(None, level, event_data)

    m_capture_event.assert_called_once_with(
        {"level": level, "message": event_data["event"], "extra": sentry_event_data},
        hint={},
    )

    processor_only_errors = SentryProcessor(level=logging.ERROR)
    event_dict = processor_only_errors(None, level, {"event": level + " message"})

    assert "sentry_id" not in event_dict


def test_sentry_tags(mocker: Any) -> None:
    m_capture_event = mocker.patch("multi_approvers.logging.capture_event")

    processor = SentryProcessor(tag_keys=["owner"])
    processor(None, "error", {"event": "failed", "owner": "acme", "repo": "anvils"})

    event = m_capture_event.call_args[0][0]
    assert event["tags"] == {"owner": "acme"}


def test_add_request_info_processor() -> None:
    request = httpx.Request(
        "GET",
        "https://api.github.com/repos/acme/anvils/pulls/12",
        headers={"Authorization": "Bearer fake-token"},
    )
    response = httpx.Response(404, content=b'{"message": "Not Found"}', request=request)
    event_dict = add_request_info_processor(
        None, None, {"event": "failed", "res": response}
    )
    assert event_dict == {
        "event": "failed",
        "response_content": b'{"message": "Not Found"}',
        "response_status_code": 404,
        "request_url": "https://api.github.com/repos/acme/anvils/pulls/12",
        "request_method": "GET",
    }


def test_add_request_info_processor_ignores_other_values() -> None:
    event_dict = {"event": "failed", "res": "not a response"}
    assert add_request_info_processor(None, None, event_dict.copy()) == event_dict


@pytest.mark.parametrize(
    "name,level",
    [("debug", logging.DEBUG), ("INFO", logging.INFO), ("Error", logging.ERROR)],
)
def test_get_logging_level(name: str, level: int) -> None:
    assert get_logging_level(name) == level
