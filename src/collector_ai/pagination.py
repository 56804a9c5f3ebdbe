"""Page-level termination policy."""

from __future__ import annotations

from enum import Enum

from collector_ai.models import Checkpoint


class PageDecision(str, Enum):
    CONTINUE = "continue"
    TARGET_REACHED = "target_reached"
    NO_PAGINATION = "no_pagination"
    NO_NEXT_PAGE = "no_next_page"
    EMPTY_PAGE = "empty_page"
    STOPPED = "stopped"

    @property
    def finalizes(self) -> bool:
        return self is not PageDecision.CONTINUE


def decide(
    checkpoint: Checkpoint,
    *,
    has_pagination: bool,
    has_next_page: bool,
    items_on_page: int | None = None,
) -> PageDecision:
    """Decide what follows a finished page.

    Continue only while fewer pages than the target have been completed, a
    next page demonstrably exists and the session was not stopped. A listing
    without pagination controls (a recommendation feed) finishes after one
    page; a page that yielded no items is taken as the end of the results.
    """
    if not checkpoint.active:
        return PageDecision.STOPPED
    if checkpoint.pages_scanned >= checkpoint.target_page_count:
        return PageDecision.TARGET_REACHED
    if items_on_page == 0:
        return PageDecision.EMPTY_PAGE
    if not has_pagination:
        return PageDecision.NO_PAGINATION
    if not has_next_page:
        return PageDecision.NO_NEXT_PAGE
    return PageDecision.CONTINUE
