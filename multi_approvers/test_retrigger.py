from __future__ import annotations

import pytest

from multi_approvers.errors import ApiCallException
from multi_approvers.retrigger import (
    retrigger_failed_check,
    select_failed_run,
    workflow_file_from_ref,
)
from multi_approvers.tests.fixtures import MockApproversApi, create_run


def test_select_failed_run_picks_lowest_id() -> None:
    runs = [create_run(12), create_run(827), create_run(21)]
    selected = select_failed_run(runs, 12)
    assert selected is not None
    assert selected.id == 12


def test_select_failed_run_ignores_other_pull_requests() -> None:
    runs = [
        create_run(3, pull_numbers=[7]),
        create_run(5, pull_numbers=[]),
        create_run(9, pull_numbers=[7, 12]),
        create_run(40, pull_numbers=[12]),
    ]
    selected = select_failed_run(runs, 12)
    assert selected is not None
    assert selected.id == 9


def test_select_failed_run_none_qualify() -> None:
    runs = [create_run(3, pull_numbers=[7]), create_run(5, pull_numbers=[])]
    assert select_failed_run(runs, 12) is None
    assert select_failed_run([], 12) is None


@pytest.mark.parametrize(
    "workflow_ref,expected",
    [
        (
            "acme/anvils/.github/workflows/multi-approvers.yml@refs/heads/main",
            "multi-approvers.yml",
        ),
        (
            "acme/anvils/.github/workflows/approvers.yml@refs/pull/12/merge",
            "approvers.yml",
        ),
        ("approvers.yml", "approvers.yml"),
        ("1873", "1873"),
        ("", None),
    ],
)
def test_workflow_file_from_ref(workflow_ref: str, expected: str) -> None:
    assert workflow_file_from_ref(workflow_ref) == expected


async def test_retrigger_resolves_workflow_and_reruns() -> None:
    api = MockApproversApi()
    api.list_workflow_runs.return_value = [
        create_run(12),
        create_run(827),
        create_run(21),
    ]

    rerun_id = await retrigger_failed_check(
        api, run_id=4411, branch="twig", pull_number=12
    )

    assert rerun_id == 12
    assert api.get_workflow_run.calls == [dict(run_id=4411)]
    assert api.list_workflow_runs.calls == [
        dict(
            workflow_id=1873,
            branch="twig",
            event="pull_request",
            status="failure",
            per_page=100,
        )
    ]
    assert api.rerun_workflow_run.calls == [dict(run_id=12)]


async def test_retrigger_with_known_workflow() -> None:
    api = MockApproversApi()
    api.list_workflow_runs.return_value = [create_run(30)]

    rerun_id = await retrigger_failed_check(
        api,
        run_id=4411,
        branch="twig",
        pull_number=12,
        workflow_id="multi-approvers.yml",
    )

    assert rerun_id == 30
    assert api.get_workflow_run.called is False
    assert api.list_workflow_runs.calls[0]["workflow_id"] == "multi-approvers.yml"


async def test_retrigger_nothing_to_rerun() -> None:
    api = MockApproversApi()
    api.list_workflow_runs.return_value = [create_run(30, pull_numbers=[99])]

    rerun_id = await retrigger_failed_check(
        api, run_id=4411, branch="twig", pull_number=12
    )

    assert rerun_id is None
    assert api.rerun_workflow_run.called is False


async def test_retrigger_rerun_error_propagates() -> None:
    api = MockApproversApi()
    api.list_workflow_runs.return_value = [create_run(30)]
    api.rerun_workflow_run.raises = ApiCallException(
        method="rerun_workflow_run", http_status_code=403, response=b""
    )

    with pytest.raises(ApiCallException):
        await retrigger_failed_check(api, run_id=4411, branch="twig", pull_number=12)
