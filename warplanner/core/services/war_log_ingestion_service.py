"""War-log ingestion: pull each clan's finished wars into the history store."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from warplanner.contracts.batch import BatchResult, WarLogRows
from warplanner.core.errors import UpstreamUnavailableError
from warplanner.core.observability import trace_service
from warplanner.core.ports import HistoryStorePort, WarLogSourcePort
from warplanner.core.war_log import flatten_war_log

logger = logging.getLogger(__name__)


class WarLogIngestionService:
    def __init__(self, war_log_source: WarLogSourcePort, history_store: HistoryStorePort) -> None:
        self.source = war_log_source
        self.history = history_store

    @trace_service
    async def ingest_group(self, group_id: str) -> WarLogRows:
        """Fetch, flatten and store one clan's war log.

        Raises:
            UpstreamUnavailableError: The war log could not be fetched or stored.
        """
        try:
            entries = await self.source.get_war_log(group_id)
        except Exception as exc:
            raise UpstreamUnavailableError("war_log_source", group_id, str(exc)) from exc

        rows = flatten_war_log(group_id, entries)
        if rows.row_count:
            try:
                await self.history.upsert_war_rows(group_id, rows)
            except Exception as exc:
                raise UpstreamUnavailableError("history_store", group_id, str(exc)) from exc
        return rows

    async def ingest(self, group_ids: Iterable[str]) -> BatchResult:
        result = BatchResult()
        for group_id in group_ids:
            try:
                rows = await self.ingest_group(group_id)
            except Exception as exc:
                logger.warning(
                    "war_log_ingest_item_failed",
                    extra={
                        "group_id": group_id,
                        "error_type": type(exc).__name__,
                        "error": str(exc),
                    },
                )
                result.record_failure(group_id)
                continue
            result.record_success(rows.row_count)

        logger.info("war_log_ingest_batch_finished", extra=result.model_dump())
        return result
