from __future__ import annotations

from typing import Iterable, Optional


class InvalidInputs(Exception):  # noqa: N818
    """
    One or more action inputs are missing or malformed.

    Every problem is collected so the user can fix them in one pass.
    """

    def __init__(self, problems: Iterable[str]) -> None:
        self.problems = list(problems)
        super().__init__(f"Invalid input(s): {'; '.join(self.problems)}")


class UnsupportedEvent(Exception):  # noqa: N818
    def __init__(self, event_name: str, supported: Iterable[str]) -> None:
        self.event_name = event_name
        self.supported = list(supported)
        super().__init__(
            f"Unexpected event [{event_name}]. Supported events are {', '.join(self.supported)}"
        )


class ApiCallException(Exception):  # noqa: N818
    def __init__(
        self,
        method: str,
        http_status_code: int,
        response: bytes,
        url: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        self.method = method
        self.status_code = http_status_code
        self.response = response
        self.url = url
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        text = f"{self.method} failed with status {self.status_code}"
        if self.url is not None:
            text = f"{self.method} {self.url} failed with status {self.status_code}"
        if self.message:
            text += f": {self.message}"
        return text


def error_message(err: BaseException) -> str:
    """
    Human readable description of an error for the failure banner.
    """
    msg = str(err)
    if msg:
        return msg
    return f"[{type(err).__name__}] {err!r}"
