from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

import pydantic
import structlog
from httpx import AsyncBaseTransport, Timeout
from pydantic import BaseModel, ConfigDict

import multi_approvers.app_config as conf
from multi_approvers.errors import ApiCallException
from multi_approvers.http import HTTPStatusError, HttpClient, Response

logger = structlog.get_logger()

GITHUB_API_VERSION = "2022-11-28"


class User(BaseModel):
    login: str


class Ref(BaseModel):
    ref: str


class PullRequest(BaseModel):
    """
    https://docs.github.com/en/rest/pulls/pulls#get-a-pull-request
    """

    number: int
    user: User
    head: Optional[Ref] = None


class PRReviewState(str, Enum):
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    COMMENTED = "COMMENTED"
    DISMISSED = "DISMISSED"
    PENDING = "PENDING"


class PRReview(BaseModel):
    """
    https://docs.github.com/en/rest/pulls/reviews#list-reviews-for-a-pull-request

    `state` is kept as the raw string GitHub sends, values we don't know about
    are treated as non-approving.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    # null when the reviewer's account was deleted.
    user: Optional[User] = None
    state: str
    # null for pending reviews.
    submitted_at: Optional[datetime] = None

    @pydantic.field_validator("state")
    @classmethod
    def normalize_state(cls, v: str) -> str:
        return v.upper()

    @property
    def login(self) -> Optional[str]:
        return self.user.login if self.user is not None else None


class TeamRole(str, Enum):
    maintainer = "maintainer"
    member = "member"


class TeamMembership(BaseModel):
    """
    https://docs.github.com/en/rest/teams/members#get-team-membership-for-a-user
    """

    role: str
    state: str


class WorkflowRunPullRequest(BaseModel):
    number: int


class WorkflowRun(BaseModel):
    """
    https://docs.github.com/en/rest/actions/workflow-runs#get-a-workflow-run
    """

    id: int
    workflow_id: int
    name: Optional[str] = None
    event: Optional[str] = None
    status: Optional[str] = None
    conclusion: Optional[str] = None
    head_branch: Optional[str] = None
    created_at: Optional[datetime] = None
    # null for runs GitHub could not associate with a pull request.
    pull_requests: Optional[List[WorkflowRunPullRequest]] = None

    @property
    def pull_request_numbers(self) -> List[int]:
        return [pr.number for pr in self.pull_requests or []]


def get_github_message(res: Response) -> Optional[str]:
    try:
        body = res.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str):
            return message
    return None


class Client:
    """
    GitHub REST client scoped to a single repository.
    """

    def __init__(
        self,
        *,
        owner: str,
        repo: str,
        token: str,
        transport: Optional[AsyncBaseTransport] = None,
    ):
        self.owner = owner
        self.repo = repo
        # NOTE: We must call `await session.aclose()` when we are finished with our session.
        # We implement an async context manager this handle this.
        self.session = HttpClient(
            timeout=Timeout(conf.GITHUB_API_TIMEOUT_SEC),
            retries=conf.GITHUB_API_RETRIES,
            transport=transport,
        )
        self.session.headers["Accept"] = "application/vnd.github+json"
        self.session.headers["Authorization"] = f"Bearer {token}"
        self.session.headers["X-GitHub-Api-Version"] = GITHUB_API_VERSION
        if (
            conf.GITHUB_API_HEADER_NAME is not None
            and conf.GITHUB_API_HEADER_VALUE is not None
        ):
            self.session.headers[
                conf.GITHUB_API_HEADER_NAME
            ] = conf.GITHUB_API_HEADER_VALUE
        self.log = logger.bind(owner=self.owner, repo=self.repo)

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        await self.session.aclose()

    def _raise_for_status(self, res: Response, api_name: str) -> None:
        try:
            res.raise_for_status()
        except HTTPStatusError as e:
            self.log.warning("github api request error", api_name=api_name, res=res)
            raise ApiCallException(
                method=api_name,
                http_status_code=res.status_code,
                response=res.content,
                url=str(res.request.url),
                message=get_github_message(res),
            ) from e

    async def _paginate(
        self,
        url: str,
        *,
        api_name: str,
        params: Optional[Mapping[str, Union[str, int]]] = None,
        items_key: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch every page of a list endpoint by following the `next` link.
        """
        results: List[Dict[str, Any]] = []
        next_url: Optional[str] = url
        next_params = params
        while next_url is not None:
            res = await self.session.get(next_url, params=next_params)
            self._raise_for_status(res, api_name)
            body = res.json()
            results += body[items_key] if items_key is not None else body
            try:
                next_url = res.links["next"]["url"]
            except KeyError:
                next_url = None
            # the next link already carries the query string
            next_params = None
        return results

    async def get_pull_request(self, number: int) -> PullRequest:
        url = conf.v3_url(f"/repos/{self.owner}/{self.repo}/pulls/{number}")
        res = await self.session.get(url)
        self._raise_for_status(res, "get_pull_request")
        return PullRequest.model_validate(res.json())

    async def list_reviews(self, number: int) -> List[PRReview]:
        reviews = await self._paginate(
            conf.v3_url(f"/repos/{self.owner}/{self.repo}/pulls/{number}/reviews"),
            api_name="list_reviews",
            params=dict(per_page=conf.GITHUB_API_PAGE_SIZE),
        )
        return [PRReview.model_validate(r) for r in reviews]

    async def get_team_membership(
        self, *, org: str, team_slug: str, username: str
    ) -> Optional[TeamMembership]:
        """
        Return None when GitHub responds with a 404.

        We can get a 404 for a few known reasons:
        1) The user is not a member
        2) The team does not exist
        3) The token cannot see the team
        """
        url = conf.v3_url(f"/orgs/{org}/teams/{team_slug}/memberships/{username}")
        res = await self.session.get(url)
        if res.status_code == 404:
            self.log.debug(
                "received 404 testing membership",
                org=org,
                team=team_slug,
                username=username,
                response=res.text,
            )
            return None
        self._raise_for_status(res, "get_team_membership")
        return TeamMembership.model_validate(res.json())

    async def get_workflow_run(self, run_id: int) -> WorkflowRun:
        url = conf.v3_url(f"/repos/{self.owner}/{self.repo}/actions/runs/{run_id}")
        res = await self.session.get(url)
        self._raise_for_status(res, "get_workflow_run")
        return WorkflowRun.model_validate(res.json())

    async def list_workflow_runs(
        self,
        workflow_id: Union[int, str],
        *,
        branch: str,
        event: str,
        status: str,
        per_page: int = conf.GITHUB_API_PAGE_SIZE,
    ) -> List[WorkflowRun]:
        """
        https://docs.github.com/en/rest/actions/workflow-runs#list-workflow-runs-for-a-workflow

        `workflow_id` is either the numeric id or the workflow file name.
        """
        runs = await self._paginate(
            conf.v3_url(
                f"/repos/{self.owner}/{self.repo}/actions/workflows/{workflow_id}/runs"
            ),
            api_name="list_workflow_runs",
            params=dict(branch=branch, event=event, status=status, per_page=per_page),
            items_key="workflow_runs",
        )
        return [WorkflowRun.model_validate(r) for r in runs]

    async def rerun_workflow_run(self, run_id: int) -> None:
        url = conf.v3_url(
            f"/repos/{self.owner}/{self.repo}/actions/runs/{run_id}/rerun"
        )
        res = await self.session.post(url)
        self._raise_for_status(res, "rerun_workflow_run")
