import asyncio
import json
import sys

import click
import structlog

from multi_approvers.config import InvalidRoster, Roster, load_roster
from multi_approvers.evaluation import review_state_by_login
from multi_approvers.logging import configure_logging
from multi_approvers.membership import get_members
from multi_approvers.queries import Client, PRReviewState

logger = structlog.get_logger()


@click.group()
def cli() -> None:
    configure_logging()


@cli.command(help="run the approval check inside a GitHub Actions job")
def run() -> None:
    """
    Inputs and the triggering event are read from the GitHub Actions
    environment. Exits with status 1 when the check fails.
    """
    from multi_approvers.main import main

    passed = asyncio.run(main())
    if not passed:
        sys.exit(1)


@cli.command(help="print the internal approvals of a pull request")
@click.argument("owner")
@click.argument("repo")
@click.argument("number", type=int)
@click.option("--token", envvar="GITHUB_TOKEN", required=True)
@click.option("--team", default=None, help="team slug within OWNER")
@click.option(
    "--members-path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="static members file, takes precedence over --team",
)
def approved_count(
    owner: str, repo: str, number: int, token: str, team: str, members_path: str
) -> None:
    if not team and not members_path:
        raise click.UsageError("one of --team or --members-path is required")

    async def get_states() -> dict:
        async with Client(owner=owner, repo=repo, token=token) as api:
            members = get_members(
                api, org=owner, team=team, members_path=members_path
            )
            pull_request = await api.get_pull_request(number)
            reviews = await api.list_reviews(number)
            return dict(
                await review_state_by_login(
                    reviews,
                    is_member=members.contains,
                    author_login=pull_request.user.login,
                )
            )

    states = asyncio.run(get_states())
    for login, state in sorted(states.items()):
        click.echo(f"{login}: {state}")
    approved = sum(1 for state in states.values() if state == PRReviewState.APPROVED)
    click.echo(f"approved: {approved}")


@cli.command(help="prints out our view of a members file")
@click.argument("members_path", type=click.Path(exists=True, dir_okay=False))
def validate_members(members_path: str) -> None:
    try:
        roster = load_roster(members_path)
    except InvalidRoster as e:
        raise click.ClickException(str(e)) from e
    click.echo(roster.model_dump_json(indent=2))


@cli.command(help="generate the JSON schema for a members file")
def gen_members_json_schema() -> None:
    click.echo(json.dumps(Roster.model_json_schema(), indent=2))
