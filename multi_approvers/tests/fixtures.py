from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from multi_approvers.queries import (
    PRReview,
    PullRequest,
    Ref,
    User,
    WorkflowRun,
    WorkflowRunPullRequest,
)

START = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    return START + timedelta(minutes=minutes)


def create_review(
    login: Optional[str], state: str, submitted_at: Optional[datetime] = START
) -> PRReview:
    return PRReview(
        user=User(login=login) if login is not None else None,
        state=state,
        submitted_at=submitted_at,
    )


def create_pull_request(
    *, login: str = "wile-e-coyote", number: int = 12
) -> PullRequest:
    return PullRequest(number=number, user=User(login=login), head=Ref(ref="twig"))


def create_run(
    run_id: int, *, pull_numbers: Iterable[int] = (12,), workflow_id: int = 1873
) -> WorkflowRun:
    return WorkflowRun(
        id=run_id,
        workflow_id=workflow_id,
        event="pull_request",
        status="completed",
        conclusion="failure",
        head_branch="twig",
        pull_requests=[WorkflowRunPullRequest(number=n) for n in pull_numbers],
    )


class StaticMembersSpy:
    """
    Membership backed by a set, recording every lookup.
    """

    def __init__(self, logins: Iterable[str]) -> None:
        self.logins = set(logins)
        self.calls: List[str] = []

    async def contains(self, login: str) -> bool:
        self.calls.append(login)
        return login in self.logins


class BaseMockFunc:
    calls: List[Mapping[str, Any]]

    def __init__(self) -> None:
        self.calls = []

    def log_call(self, args: Dict[str, Any]) -> None:
        self.calls.append(args)

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def called(self) -> bool:
        return self.call_count > 0

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: call_count={self.call_count!r} calls={self.calls!r}>"


class MockGetPullRequest(BaseMockFunc):
    return_value: PullRequest = create_pull_request()

    async def __call__(self, number: int) -> PullRequest:
        self.log_call(dict(number=number))
        return self.return_value


class MockListReviews(BaseMockFunc):
    def __init__(self) -> None:
        super().__init__()
        self.return_value: List[PRReview] = []

    async def __call__(self, number: int) -> List[PRReview]:
        self.log_call(dict(number=number))
        return self.return_value


class MockGetWorkflowRun(BaseMockFunc):
    workflow_id = 1873

    async def __call__(self, run_id: int) -> WorkflowRun:
        self.log_call(dict(run_id=run_id))
        return WorkflowRun(id=run_id, workflow_id=self.workflow_id)


class MockListWorkflowRuns(BaseMockFunc):
    def __init__(self) -> None:
        super().__init__()
        self.return_value: List[WorkflowRun] = []

    async def __call__(
        self,
        workflow_id: Union[int, str],
        *,
        branch: str,
        event: str,
        status: str,
        per_page: int = 100,
    ) -> List[WorkflowRun]:
        self.log_call(
            dict(
                workflow_id=workflow_id,
                branch=branch,
                event=event,
                status=status,
                per_page=per_page,
            )
        )
        return self.return_value


class MockRerunWorkflowRun(BaseMockFunc):
    raises: Optional[Exception] = None

    async def __call__(self, run_id: int) -> None:
        self.log_call(dict(run_id=run_id))
        if self.raises is not None:
            raise self.raises


class MockApproversApi:
    def __init__(self) -> None:
        self.get_pull_request = MockGetPullRequest()
        self.list_reviews = MockListReviews()
        self.get_workflow_run = MockGetWorkflowRun()
        self.list_workflow_runs = MockListWorkflowRuns()
        self.rerun_workflow_run = MockRerunWorkflowRun()

    @property
    def calls(self) -> Mapping[str, List[Mapping[str, Any]]]:
        return {
            name: func.calls
            for name, func in vars(self).items()
            if isinstance(func, BaseMockFunc)
        }

    @property
    def called(self) -> bool:
        return any(self.calls.values())
