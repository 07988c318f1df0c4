from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Awaitable, Callable, Dict, Iterable, Mapping, Optional

from multi_approvers.queries import PRReview, PRReviewState

IsMember = Callable[[str], Awaitable[bool]]

# reviews without a timestamp sort before everything else.
EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def submitted_at_key(review: PRReview) -> datetime:
    if review.submitted_at is None:
        return EARLIEST
    if review.submitted_at.tzinfo is None:
        return review.submitted_at.replace(tzinfo=timezone.utc)
    return review.submitted_at


async def review_state_by_login(
    reviews: Iterable[PRReview], *, is_member: IsMember, author_login: str
) -> Mapping[str, str]:
    """
    Reduce each member reviewer's history to their terminal review state.

    Reviews are replayed oldest first (the sort is stable, so ties keep the
    order GitHub returned them in). A comment after an approval does not
    retract the approval; any other later review replaces it.
    """
    is_member_by_login: Dict[str, bool] = {}
    state_by_login: Dict[str, str] = {}

    for review in sorted(reviews, key=submitted_at_key):
        reviewer_login = review.login
        if reviewer_login is None:
            continue

        # Ignore the pull request author.
        if reviewer_login == author_login:
            continue

        # Only consider members.
        if reviewer_login not in is_member_by_login:
            is_member_by_login[reviewer_login] = await is_member(reviewer_login)
        if not is_member_by_login[reviewer_login]:
            continue

        current_state = state_by_login.get(reviewer_login)

        # Set state if it does not exist.
        if current_state is None:
            state_by_login[reviewer_login] = review.state
            continue

        # Always update state if not approved.
        if current_state != PRReviewState.APPROVED:
            state_by_login[reviewer_login] = review.state
            continue

        # Do not update approved state for a comment.
        if review.state != PRReviewState.COMMENTED:
            state_by_login[reviewer_login] = review.state

    return MappingProxyType(state_by_login)


async def approved_count(
    reviews: Iterable[PRReview], *, is_member: IsMember, author_login: str
) -> int:
    """
    Returns the number of member reviewers whose terminal state is approved.
    """
    state_by_login = await review_state_by_login(
        reviews, is_member=is_member, author_login=author_login
    )
    return sum(
        1 for state in state_by_login.values() if state == PRReviewState.APPROVED
    )


def missing_approvals_message(count: int, required: int) -> str:
    return f"This pull request has {count} of {required} required internal approvals."


@dataclass(frozen=True)
class Decision:
    passed: bool
    message: Optional[str] = None


PASSED = Decision(passed=True)


def check_approvals(count: int, required: int) -> Decision:
    if count < required:
        return Decision(
            passed=False, message=missing_approvals_message(count, required)
        )
    return PASSED
