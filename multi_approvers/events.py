from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import pydantic
from starlette.config import Config

PULL_REQUEST = "pull_request"
PULL_REQUEST_REVIEW = "pull_request_review"
SUPPORTED_EVENTS = (PULL_REQUEST, PULL_REQUEST_REVIEW)


class Owner(pydantic.BaseModel):
    login: str


class Repository(pydantic.BaseModel):
    name: str
    owner: Owner


class Ref(pydantic.BaseModel):
    ref: str


class PullRequest(pydantic.BaseModel):
    number: int
    head: Ref


class PullRequestEvent(pydantic.BaseModel):
    """
    The fields we use from both the `pull_request` and `pull_request_review`
    payloads.

    https://docs.github.com/en/webhooks/webhook-events-and-payloads#pull_request
    https://docs.github.com/en/webhooks/webhook-events-and-payloads#pull_request_review
    """

    pull_request: PullRequest
    repository: Repository


@dataclass(frozen=True)
class ActionContext:
    """
    The GitHub Actions run that invoked us.

    https://docs.github.com/en/actions/learn-github-actions/variables#default-environment-variables
    """

    event_name: str
    run_id: int
    payload: Dict[str, Any] = field(default_factory=dict)
    workflow_ref: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> ActionContext:
        config = Config(environ=os.environ if environ is None else environ)
        event_path = config("GITHUB_EVENT_PATH", default=None)
        payload: Dict[str, Any] = {}
        if event_path and Path(event_path).is_file():
            payload = json.loads(Path(event_path).read_text())
        return cls(
            event_name=config("GITHUB_EVENT_NAME", default=""),
            run_id=config("GITHUB_RUN_ID", cast=int, default=0),
            payload=payload,
            workflow_ref=config("GITHUB_WORKFLOW_REF", default=None),
        )

    def parse_event(self) -> PullRequestEvent:
        return PullRequestEvent.model_validate(self.payload)
