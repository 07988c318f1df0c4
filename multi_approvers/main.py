from __future__ import annotations

from typing import List, Optional

import structlog
from httpx import AsyncBaseTransport

import multi_approvers.app_config as conf
from multi_approvers.actions import ActionsCore
from multi_approvers.errors import InvalidInputs, UnsupportedEvent, error_message
from multi_approvers.events import SUPPORTED_EVENTS, ActionContext
from multi_approvers.membership import get_members
from multi_approvers.pull_request import (
    MultiApprovers,
    Outcome,
    PullRequestContext,
    Stage,
)
from multi_approvers.queries import Client
from multi_approvers.retrigger import workflow_file_from_ref

logger = structlog.get_logger()

FAILURE_BANNER = "Multi-approvers action failed"


def validate_event(event_name: str) -> str:
    if event_name not in SUPPORTED_EVENTS:
        raise UnsupportedEvent(event_name, SUPPORTED_EVENTS)
    return event_name


def validate_inputs(
    *,
    token: str,
    team: str,
    members_path: str,
    required_approvals: str,
) -> int:
    """
    Check every input and return the required approval count.

    All problems are reported at once.
    """
    problems: List[str] = []
    if not token:
        problems.append("token is required")
    if not team and not members_path:
        problems.append("team is required")
    required = conf.MIN_APPROVED_COUNT
    if required_approvals:
        try:
            required = int(required_approvals)
        except ValueError:
            problems.append("required-approvals must be an integer")
        else:
            if required < 1:
                problems.append("required-approvals must be at least 1")
    if problems:
        raise InvalidInputs(problems)
    return required


def report(core: ActionsCore, outcome: Outcome) -> None:
    if Stage.SKIP in outcome.stages:
        core.info(
            f"Pull request login {outcome.author_login} is an internal member, therefore no special approval rules apply."
        )
        return
    core.info(f"Found {outcome.approved_count} APPROVED internal reviews.")
    if not outcome.decision.passed and outcome.decision.message is not None:
        core.set_failed(outcome.decision.message)


async def run(
    core: ActionsCore,
    context: ActionContext,
    *,
    transport: Optional[AsyncBaseTransport] = None,
) -> Outcome:
    event_name = validate_event(context.event_name)
    token = core.get_input("token")
    team = core.get_input("team")
    members_path = core.get_input("members-path")
    required_approvals = validate_inputs(
        token=token,
        team=team,
        members_path=members_path,
        required_approvals=core.get_input("required-approvals"),
    )
    workflow = core.get_input("workflow") or context.workflow_ref

    event = context.parse_event()
    ctx = PullRequestContext(
        owner=event.repository.owner.login,
        repo=event.repository.name,
        pull_number=event.pull_request.number,
        branch=event.pull_request.head.ref,
        event_name=event_name,
        run_id=context.run_id,
        workflow_id=workflow_file_from_ref(workflow) if workflow else None,
    )

    async with Client(
        owner=ctx.owner, repo=ctx.repo, token=token, transport=transport
    ) as api:
        members = get_members(
            api, org=ctx.owner, team=team, members_path=members_path
        )
        outcome = await MultiApprovers(
            ctx, api=api, members=members, required_approvals=required_approvals
        ).validate(on_decision=lambda decided: report(core, decided))
    if outcome.rerun_id is not None:
        core.info(f"Re-running failed workflow run {outcome.rerun_id}.")
    return outcome


async def main(
    core: Optional[ActionsCore] = None,
    context: Optional[ActionContext] = None,
    *,
    transport: Optional[AsyncBaseTransport] = None,
) -> bool:
    """
    Run the action, returning whether the check passed.

    Every error ends up as a single failure message.
    """
    core = core or ActionsCore()
    try:
        context = context or ActionContext.from_env()
        await run(core, context, transport=transport)
    except Exception as err:
        logger.warning("multi-approvers failed", exc_info=True)
        core.debug(repr(err))
        core.set_failed(f"{FAILURE_BANNER}: {error_message(err)}")
    return not core.failed
