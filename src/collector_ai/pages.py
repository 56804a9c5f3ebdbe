"""Page model: which kind of page a URL is and how listing pages are numbered."""

from __future__ import annotations

from enum import Enum
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from collector_ai.models import UNBOUNDED_PAGES, Mode

JOBS_PER_PAGE = 25

# The job listing never serves more pages than this.
MAX_JOB_PAGES = 25

_PAGE_PARAM = {Mode.PROFILES: "page", Mode.JOBS: "start"}


class PageKind(str, Enum):
    PEOPLE_SEARCH = "people_search"
    JOB_SEARCH = "job_search"
    PROFILE = "profile"
    UNKNOWN = "unknown"


LISTING_KIND = {Mode.PROFILES: PageKind.PEOPLE_SEARCH, Mode.JOBS: PageKind.JOB_SEARCH}


def detect_page_kind(url: str) -> PageKind:
    path = urlsplit(url).path
    if "/search/results/people" in path:
        return PageKind.PEOPLE_SEARCH
    if "/jobs/search" in path or "/jobs/collections" in path:
        return PageKind.JOB_SEARCH
    if path.startswith("/in/") or path.startswith("/pub/"):
        return PageKind.PROFILE
    return PageKind.UNKNOWN


def mode_for(kind: PageKind) -> Mode | None:
    """The collection mode a listing page supports, or None for non-listing pages."""
    for mode, listing in LISTING_KIND.items():
        if listing is kind:
            return mode
    return None


def _query(url: str) -> list[tuple[str, str]]:
    return parse_qsl(urlsplit(url).query, keep_blank_values=True)


def _int_param(url: str, name: str, default: int) -> int:
    for key, value in _query(url):
        if key == name:
            try:
                return int(value)
            except ValueError:
                return default
    return default


def current_page(url: str, mode: Mode) -> int:
    """1-based page number encoded in a listing URL."""
    if mode is Mode.JOBS:
        return max(_int_param(url, "start", 0), 0) // JOBS_PER_PAGE + 1
    return max(_int_param(url, "page", 1), 1)


def _with_query(url: str, params: list[tuple[str, str]]) -> str:
    parts = urlsplit(url)
    return urlunsplit(parts._replace(query=urlencode(params)))


def base_url(url: str, mode: Mode) -> str:
    """Strip the paging parameter so any page of the listing can be rebuilt."""
    name = _PAGE_PARAM[mode]
    return _with_query(url, [(k, v) for k, v in _query(url) if k != name])


def page_url(base: str, mode: Mode, page: int) -> str:
    name = _PAGE_PARAM[mode]
    params = [(k, v) for k, v in _query(base) if k != name]
    if mode is Mode.JOBS:
        start = (page - 1) * JOBS_PER_PAGE
        if start > 0:
            params.append((name, str(start)))
    else:
        params.append((name, str(page)))
    return _with_query(base, params)


def resolve_target(page_count: int | str, mode: Mode) -> int:
    """Turn a user page-count choice (a number or "all") into targetPageCount."""
    if isinstance(page_count, str):
        if page_count.strip().lower() == "all":
            return MAX_JOB_PAGES if mode is Mode.JOBS else UNBOUNDED_PAGES
        page_count = int(page_count)
    if page_count < 1:
        raise ValueError(f"Page count must be at least 1, got {page_count}")
    if mode is Mode.JOBS:
        return min(page_count, MAX_JOB_PAGES)
    return min(page_count, UNBOUNDED_PAGES)
