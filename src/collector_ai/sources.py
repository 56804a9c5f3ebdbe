"""Collaborator interfaces the pipeline consumes.

Field extraction from page markup lives behind these protocols; the
pipeline only sees ids, card summaries and full records as plain dicts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Protocol

from collector_ai.config import Settings
from collector_ai.stabilize import wait_for_stable_ids


class PageContext(Protocol):
    """The page an execution context was booted on."""

    @property
    def url(self) -> str: ...

    def has_pagination(self) -> bool: ...

    def has_next_page(self) -> bool: ...


class ItemSource(Protocol):
    async def discover_all_item_ids(self) -> list[str]:
        """Ordered ids on the current listing page, once the listing has settled."""
        ...

    async def get_card_summary(self, item_id: str) -> dict | None: ...

    async def get_full_record(self, item_id: str) -> dict | None:
        """Complete record for ``item_id``; None when it cannot be extracted."""
        ...

    async def is_seen(self, item_id: str) -> bool: ...


class Exporter(Protocol):
    def export(self, records: list[dict], formats: list[str]) -> object: ...


class Browser(Protocol):
    """Drives the real page: every navigation destroys the current execution context."""

    @property
    def url(self) -> str: ...

    async def navigate(self, url: str) -> None: ...

    def open_context(self) -> tuple[PageContext, ItemSource]: ...


class ListingItemSource(ABC):
    """Base for item sources over a virtualized listing.

    Subclasses report the raw placeholder-shell ids and the ids of cards
    that already have content; discovery waits for the shell count to
    settle before trusting it. Pass ``is_active`` (usually
    ``CheckpointStore.is_active``) so a stop request ends the wait early.
    """

    def __init__(
        self,
        settings: Settings,
        is_active: Callable[[], bool] = lambda: True,
    ) -> None:
        self.settings = settings
        self._is_active = is_active

    @abstractmethod
    async def shell_ids(self) -> list[str]: ...

    @abstractmethod
    async def realized_ids(self) -> list[str]: ...

    async def discover_all_item_ids(self) -> list[str]:
        return await wait_for_stable_ids(
            self.shell_ids,
            self.realized_ids,
            required_stable=self.settings.stable_samples,
            max_attempts=self.settings.max_stabilize_attempts,
            min_interval=self.settings.min_sample_interval,
            max_interval=self.settings.max_sample_interval,
            cancelled=lambda: not self._is_active(),
        )

    @abstractmethod
    async def get_card_summary(self, item_id: str) -> dict | None: ...

    @abstractmethod
    async def get_full_record(self, item_id: str) -> dict | None: ...

    async def is_seen(self, item_id: str) -> bool:
        return False
