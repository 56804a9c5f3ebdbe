"""Pydantic models for the collection pipeline."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

# targetPageCount sentinel meaning "until the listing runs out of pages".
UNBOUNDED_PAGES = 9999


class Mode(str, Enum):
    """What kind of record a session collects."""

    PROFILES = "profiles"
    JOBS = "jobs"


class TriageDecision(str, Enum):
    REJECT = "reject"
    KEEP = "keep"
    MAYBE = "maybe"


class TriageResult(BaseModel):
    """First-tier decision made from a card summary."""

    decision: TriageDecision
    reason: str = ""


class FullEvaluation(BaseModel):
    """Second-tier decision made from the complete record."""

    accept: bool
    reason: str = ""


class BinaryEvaluation(BaseModel):
    """Decision of the basic (non-tiered) evaluation mode."""

    download: bool
    reason: str = ""


class TriageRecord(BaseModel):
    item_id: str
    decision: TriageDecision
    reason: str = ""
    card: dict = Field(
        default_factory=dict,
        description="Card summary the decision was made from",
    )

    @property
    def passed(self) -> bool:
        return self.decision is not TriageDecision.REJECT


class ItemCursor(BaseModel):
    """Page-scoped position over the snapshotted item ids."""

    item_ids: list[str] = Field(default_factory=list)
    index: int = 0
    snapshotted: bool = Field(
        default=False,
        description="True once item_ids was captured for the current page",
    )

    @property
    def exhausted(self) -> bool:
        return self.snapshotted and self.index >= len(self.item_ids)

    @property
    def current(self) -> str | None:
        if self.index < len(self.item_ids):
            return self.item_ids[self.index]
        return None


class EvaluationCounters(BaseModel):
    evaluated: int = 0
    accepted: int = 0


def _fresh_counters() -> dict[Mode, EvaluationCounters]:
    return {mode: EvaluationCounters() for mode in Mode}


class Checkpoint(BaseModel):
    """Everything a freshly booted pipeline needs to continue a session."""

    active: bool = Field(
        default=True,
        exclude=True,
        description="Persisted under its own key; see CheckpointStore",
    )
    mode: Mode
    start_page: int = 1
    current_page: int = 1
    target_page_count: int = 1
    base_url: str = ""
    formats: list[str] = Field(default_factory=lambda: ["json"])
    include_seen: bool = True
    ai_enabled: bool = False
    two_tier: bool = False
    buffer: list[dict] = Field(default_factory=list)
    cursor: ItemCursor = Field(default_factory=ItemCursor)
    triage: list[TriageRecord] = Field(default_factory=list)
    counters: dict[Mode, EvaluationCounters] = Field(default_factory=_fresh_counters)
    detail_url: str = Field(
        default="",
        description="Detail page the profile deep-dive navigated to, if any",
    )

    @property
    def pages_scanned(self) -> int:
        return self.current_page - self.start_page + 1

    @property
    def stats(self) -> EvaluationCounters:
        return self.counters.setdefault(self.mode, EvaluationCounters())

    @property
    def unbounded(self) -> bool:
        return self.target_page_count >= UNBOUNDED_PAGES

    def triage_for(self, item_id: str) -> TriageRecord | None:
        for record in self.triage:
            if record.item_id == item_id:
                return record
        return None

    def next_untriaged(self) -> str | None:
        """First id on the page without a Triage Record, if any."""
        triaged = {record.item_id for record in self.triage}
        return next((i for i in self.cursor.item_ids if i not in triaged), None)

    def reset_page(self) -> None:
        self.cursor = ItemCursor()
        self.triage = []
        self.detail_url = ""


class SessionOptions(BaseModel):
    """What the user chose when starting a session."""

    page_count: int | str = Field(default=1, description='Number of pages, or "all"')
    formats: list[str] = Field(default_factory=lambda: ["json"])
    include_seen: bool = True
    ai: bool = False
    two_tier: bool = True


class Outcome(str, Enum):
    EXPORTED = "exported"
    NO_MATCHES = "no_matches"
    NO_RESULTS = "no_results"
    ABORTED = "aborted"


class SessionReport(BaseModel):
    """What a finished session produced."""

    outcome: Outcome
    mode: Mode
    items: int = 0
    evaluated: int = 0
    accepted: int = 0
    pages_scanned: int = 0
    message: str = ""


class BootAction(str, Enum):
    IDLE = "idle"
    NAVIGATE = "navigate"
    FINISHED = "finished"


class BootResult(BaseModel):
    """How one execution context ended."""

    action: BootAction
    url: str | None = None
    report: SessionReport | None = None

    @classmethod
    def idle(cls) -> BootResult:
        return cls(action=BootAction.IDLE)

    @classmethod
    def navigate(cls, url: str) -> BootResult:
        return cls(action=BootAction.NAVIGATE, url=url)

    @classmethod
    def finished(cls, report: SessionReport) -> BootResult:
        return cls(action=BootAction.FINISHED, report=report)
