"""Batch job results and ingestion payloads."""

from pydantic import Field

from warplanner.contracts.common import BaseContract
from warplanner.contracts.history import AttackRecord, RosterEntry, WarEvent


class BatchResult(BaseContract):
    """Outcome of a multi-group batch run; failures never abort the batch."""

    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    rows_written: int = 0
    failed_items: list[str] = Field(default_factory=list)

    def record_success(self, rows: int = 0) -> None:
        self.processed += 1
        self.succeeded += 1
        self.rows_written += rows

    def record_failure(self, item: str) -> None:
        self.processed += 1
        self.failed += 1
        self.failed_items = [*self.failed_items, item]


class WarLogRows(BaseContract):
    """Rows flattened out of a group's war log."""

    events: list[WarEvent] = Field(default_factory=list)
    roster: list[RosterEntry] = Field(default_factory=list)
    attacks: list[AttackRecord] = Field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.events) + len(self.roster) + len(self.attacks)
