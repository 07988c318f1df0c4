from pathlib import Path

from starlette.config import Config

from multi_approvers.logging import get_logging_level

config = Config(".env" if Path(".env").is_file() else None)

LOGGING_LEVEL = get_logging_level(config("LOGGING_LEVEL", default="INFO"))

# For GitHub Enterprise, the v3 API root has the form:
# http(s)://[hostname]/api/v3, instead of https://api.github.com.
# GitHub Actions exposes the correct root as GITHUB_API_URL.
GITHUB_API_URL = config("GITHUB_API_URL", default="https://api.github.com")

# An extra header to send with git API requests.
GITHUB_API_HEADER_NAME = config("GITHUB_API_HEADER_NAME", default=None)
GITHUB_API_HEADER_VALUE = config("GITHUB_API_HEADER_VALUE", default=None)

# connection failures are retried by the http transport, we never retry in the
# approval logic itself.
GITHUB_API_RETRIES = config("GITHUB_API_RETRIES", cast=int, default=3)
GITHUB_API_TIMEOUT_SEC = config("GITHUB_API_TIMEOUT_SEC", cast=float, default=30.0)

# the largest page size GitHub accepts.
GITHUB_API_PAGE_SIZE = 100

# used when the `required-approvals` input is empty.
MIN_APPROVED_COUNT = config("MIN_APPROVED_COUNT", cast=int, default=2)

SENTRY_DSN = config("SENTRY_DSN", default=None)


def v3_url(path: str) -> str:
    return GITHUB_API_URL.rstrip("/") + path
