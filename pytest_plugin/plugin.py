import os

import pytest


@pytest.hookimpl(tryfirst=True)  # type: ignore[misc]
def pytest_load_initial_conftests(
    args: object, early_config: object, parser: object
) -> None:
    os.environ["LOGGING_LEVEL"] = "DEBUG"
    os.environ["GITHUB_API_URL"] = "https://api.github.com"
    os.environ["GITHUB_API_RETRIES"] = "0"
    os.environ["MIN_APPROVED_COUNT"] = "2"
    for name in ("SENTRY_DSN", "GITHUB_API_HEADER_NAME", "GITHUB_API_HEADER_VALUE"):
        os.environ.pop(name, None)
