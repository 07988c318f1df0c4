from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

import structlog
from typing_extensions import Protocol

from multi_approvers.evaluation import Decision, approved_count, check_approvals
from multi_approvers.events import PULL_REQUEST_REVIEW
from multi_approvers.membership import Members
from multi_approvers.queries import PRReview, PullRequest
from multi_approvers.retrigger import (
    WorkflowId,
    WorkflowRunsAPI,
    retrigger_failed_check,
)

logger = structlog.get_logger()


class ApproversAPI(WorkflowRunsAPI, Protocol):
    async def get_pull_request(self, number: int) -> PullRequest:
        ...

    async def list_reviews(self, number: int) -> List[PRReview]:
        ...


@dataclass(frozen=True)
class PullRequestContext:
    owner: str
    repo: str
    pull_number: int
    branch: str
    event_name: str
    run_id: int
    # resolved from `run_id` when unknown.
    workflow_id: Optional[WorkflowId] = None


class Stage(Enum):
    RESOLVE_AUTHOR = "resolve_author"
    SKIP = "skip"
    RECONCILE = "reconcile"
    DECIDE = "decide"
    RETRIGGER = "retrigger"


@dataclass
class Outcome:
    decision: Decision
    author_login: Optional[str] = None
    approved_count: Optional[int] = None
    rerun_id: Optional[int] = None
    stages: List[Stage] = field(default_factory=list)


OnDecision = Callable[[Outcome], None]


class MultiApprovers:
    """
    Check that a pull request from a non-member has enough member approvals.

    Stages run in order, each depending on the result of the last:

        RESOLVE_AUTHOR -> (SKIP | RECONCILE) -> DECIDE -> (RETRIGGER)

    Falling short of the required approvals is a normal outcome and is returned
    as a failed `Decision`. API errors are raised.

    `on_decision` is called with the outcome as soon as it is decided, before
    any re-run is requested, so a failing re-run cannot hide the decision.
    """

    def __init__(
        self,
        ctx: PullRequestContext,
        *,
        api: ApproversAPI,
        members: Members,
        required_approvals: int,
    ) -> None:
        self.ctx = ctx
        self.api = api
        self.members = members
        self.required_approvals = required_approvals
        self.log = logger.bind(
            owner=ctx.owner,
            repo=ctx.repo,
            pull_number=ctx.pull_number,
            event_name=ctx.event_name,
        )

    async def resolve_author(self) -> str:
        pull_request = await self.api.get_pull_request(self.ctx.pull_number)
        return pull_request.user.login

    async def reconcile(self, author_login: str) -> int:
        reviews = await self.api.list_reviews(self.ctx.pull_number)
        self.log.info("fetched reviews", review_count=len(reviews))
        return await approved_count(
            reviews, is_member=self.members.contains, author_login=author_login
        )

    async def retrigger(self) -> Optional[int]:
        return await retrigger_failed_check(
            self.api,
            run_id=self.ctx.run_id,
            branch=self.ctx.branch,
            pull_number=self.ctx.pull_number,
            workflow_id=self.ctx.workflow_id,
        )

    async def validate(self, on_decision: Optional[OnDecision] = None) -> Outcome:
        outcome = Outcome(decision=Decision(passed=True))

        outcome.stages.append(Stage.RESOLVE_AUTHOR)
        author_login = await self.resolve_author()
        outcome.author_login = author_login
        log = self.log.bind(author=author_login)

        if await self.members.contains(author_login):
            # Do nothing if the pull request owner is an internal user.
            outcome.stages.append(Stage.SKIP)
            log.info(
                "pull request author is an internal member, therefore no special approval rules apply"
            )
            if on_decision is not None:
                on_decision(outcome)
            # no re-run for member-authored pull requests
            return outcome

        outcome.stages.append(Stage.RECONCILE)
        count = await self.reconcile(author_login)
        outcome.approved_count = count
        log.info("found approved internal reviews", approved_count=count)

        outcome.stages.append(Stage.DECIDE)
        outcome.decision = check_approvals(count, self.required_approvals)
        if not outcome.decision.passed:
            log.info("missing required approvals", required=self.required_approvals)
        if on_decision is not None:
            on_decision(outcome)

        # GitHub tracks checks from pull_request and pull_request_review runs
        # separately, so a review has to refresh the failed pull_request check.
        if self.ctx.event_name == PULL_REQUEST_REVIEW:
            outcome.stages.append(Stage.RETRIGGER)
            outcome.rerun_id = await self.retrigger()

        return outcome
