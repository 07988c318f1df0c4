from __future__ import annotations

from typing import Iterable, Optional

import structlog
from typing_extensions import Protocol

from multi_approvers.config import load_roster
from multi_approvers.queries import Client, TeamRole

logger = structlog.get_logger()

ACTIVE = "active"
ALLOWED_ROLES = {TeamRole.maintainer.value, TeamRole.member.value}


class Members(Protocol):
    async def contains(self, login: str) -> bool:
        ...


class StaticMembers:
    """
    Members from a fixed roster, no network calls.
    """

    def __init__(self, logins: Iterable[str]) -> None:
        self.logins = frozenset(logins)

    async def contains(self, login: str) -> bool:
        return login in self.logins

    def __repr__(self) -> str:
        return f"<StaticMembers: count={len(self.logins)}>"


class TeamMembers:
    """
    Members backed by a GitHub team.

    Only active maintainers and members count. A 404 from GitHub means the
    login is not a member.
    """

    def __init__(self, api: Client, *, org: str, team_slug: str) -> None:
        self.api = api
        self.org = org
        self.team_slug = team_slug
        self.log = logger.bind(org=org, team=team_slug)

    async def contains(self, login: str) -> bool:
        membership = await self.api.get_team_membership(
            org=self.org, team_slug=self.team_slug, username=login
        )
        if membership is None:
            self.log.debug("user is not a member", login=login)
            return False
        return membership.role in ALLOWED_ROLES and membership.state == ACTIVE

    def __repr__(self) -> str:
        return f"<TeamMembers: org={self.org!r} team={self.team_slug!r}>"


def get_members(
    api: Client, *, org: str, team: Optional[str], members_path: Optional[str]
) -> Members:
    """
    Select the membership source. A roster file takes precedence over a team.
    """
    if members_path:
        return StaticMembers(load_roster(members_path).logins)
    if team:
        return TeamMembers(api, org=org, team_slug=team)
    raise ValueError("either a team or a members file is required")
