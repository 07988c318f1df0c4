"""
Re-run stale approval checks.

GitHub tracks the checks created by `pull_request` and `pull_request_review`
triggered runs of the same workflow as different status checks. When a review
satisfies the approval requirements only the review check is updated, so the
check from the last push keeps failing. We re-run that failed run so the pull
request reflects the current approvals.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Union

import structlog
from typing_extensions import Protocol

import multi_approvers.app_config as conf
from multi_approvers.queries import WorkflowRun

logger = structlog.get_logger()

# only runs triggered by pushes are re-run. Re-running review triggered runs
# would trigger ourselves again.
RERUN_EVENT = "pull_request"
FAILURE = "failure"

WorkflowId = Union[int, str]


class WorkflowRunsAPI(Protocol):
    async def get_workflow_run(self, run_id: int) -> WorkflowRun:
        ...

    async def list_workflow_runs(
        self,
        workflow_id: WorkflowId,
        *,
        branch: str,
        event: str,
        status: str,
        per_page: int = ...,
    ) -> List[WorkflowRun]:
        ...

    async def rerun_workflow_run(self, run_id: int) -> None:
        ...


def workflow_file_from_ref(workflow_ref: str) -> Optional[str]:
    """
    Get the workflow file name from a GITHUB_WORKFLOW_REF.

    `octo-org/octo-repo/.github/workflows/approvers.yml@refs/heads/main`
    becomes `approvers.yml`.
    """
    path = workflow_ref.split("@")[0]
    if not path:
        return None
    return path.split("/")[-1] or None


async def get_workflow_id(api: WorkflowRunsAPI, run_id: int) -> int:
    run = await api.get_workflow_run(run_id)
    return run.workflow_id


def select_failed_run(
    runs: Iterable[WorkflowRun], pull_number: int
) -> Optional[WorkflowRun]:
    """
    Pick the failed run to re-run for `pull_number`.

    A run may be associated with zero or more pull requests, only runs naming
    this pull request qualify. Of those we take the lowest run id.
    """
    failed_runs = sorted(
        (run for run in runs if pull_number in run.pull_request_numbers),
        key=lambda run: run.id,
    )
    if not failed_runs:
        return None
    # TODO: run ids increase over time so this is the oldest failed run. Switch
    # to the newest (created_at descending) once we confirm that is intended.
    return failed_runs[0]


async def retrigger_failed_check(
    api: WorkflowRunsAPI,
    *,
    run_id: int,
    branch: str,
    pull_number: int,
    workflow_id: Optional[WorkflowId] = None,
) -> Optional[int]:
    """
    Re-run the failed `pull_request` run of this workflow for `pull_number`.

    Returns the id of the re-run workflow run, or None if there was nothing to
    re-run.
    """
    log = logger.bind(run_id=run_id, branch=branch, pull_number=pull_number)
    if workflow_id is None:
        workflow_id = await get_workflow_id(api, run_id)
    log = log.bind(workflow_id=workflow_id)

    runs = await api.list_workflow_runs(
        workflow_id,
        branch=branch,
        event=RERUN_EVENT,
        status=FAILURE,
        per_page=conf.GITHUB_API_PAGE_SIZE,
    )
    log.info("found failed workflow runs", run_ids=[run.id for run in runs])

    failed_run = select_failed_run(runs, pull_number)
    if failed_run is None:
        log.info("no failed runs for pull request")
        return None

    log.info("re-running failed workflow run", failed_run_id=failed_run.id)
    await api.rerun_workflow_run(failed_run.id)
    return failed_run.id
