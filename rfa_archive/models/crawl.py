"""Crawl bookkeeping models - per-unit outcomes and run reports.

All models are frozen Pydantic v2 models.  ``CrawlReport`` is the only
mutable aggregate; the scheduler appends unit results to it as it goes.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class UnitStatus(str, Enum):
    """Outcome of one (site, month) crawl unit."""

    SKIPPED = "SKIPPED"              # Completion marker already present
    EMPTY = "EMPTY"                  # count == 0, past year, marker written
    EMPTY_PENDING = "EMPTY_PENDING"  # count == 0, current year, no marker
    INGESTED = "INGESTED"            # Records + index + marker committed
    FAILED = "FAILED"                # Aborted; nothing written


class UnitResult(BaseModel):
    """Result of :meth:`CrawlService.ingest_unit`."""

    model_config = ConfigDict(frozen=True)

    site: str
    year: int
    month: int = Field(ge=1, le=12)
    status: UnitStatus
    articles: int = Field(default=0, ge=0, description="Records committed.")
    images_downloaded: int = Field(default=0, ge=0)
    images_failed: int = Field(default=0, ge=0)
    error: str | None = Field(default=None, description="Failure reason for FAILED units.")

    @property
    def label(self) -> str:
        return f"{self.site} {self.year}-{self.month:02d}"


class CrawlReport(BaseModel):
    """Aggregate of every unit a scheduler run touched."""

    results: list[UnitResult] = Field(default_factory=list)

    def add(self, result: UnitResult) -> None:
        self.results.append(result)

    def count(self, status: UnitStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def articles(self) -> int:
        return sum(r.articles for r in self.results)

    @property
    def failed(self) -> list[UnitResult]:
        return [r for r in self.results if r.status == UnitStatus.FAILED]


class SiteProgress(BaseModel):
    """Completion-marker summary for one site, used by ``status``."""

    model_config = ConfigDict(frozen=True)

    site: str
    completed_months: int = 0
    total_months: int = 0
    last_completed: str | None = Field(default=None, description="Latest completed YYYY-MM.")

    @property
    def complete(self) -> bool:
        return self.total_months > 0 and self.completed_months >= self.total_months
