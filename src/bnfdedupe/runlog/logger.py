"""Append-only JSONL log of one engine run.

Callers own the logger: the engine writes to a logger it is handed and
never opens or closes a log file itself.
"""

import json
import traceback
from collections.abc import Mapping
from dataclasses import asdict
from pathlib import Path
from typing import Any

from bnfdedupe.runlog.models import LOG_LEVELS, LogEvent
from bnfdedupe.utils import get_iso_timestamp

__all__ = ["RUN_STATUSES", "RunLogger"]

RUN_STATUSES = ("success", "cancelled", "failed")


class RunLogger:
    """Writes one JSON object per line for every engine event.

    Events without an explicit stage are tagged with the stage opened by
    the last ``stage_started`` call. Lines are flushed as they are written,
    so a failed or cancelled run still leaves a complete log.

    Parameters
    ----------
    run_id : str
        Identifier stamped on every event, usually from ``generate_run_id``.
    log_path : str | Path
        JSONL file. Parent directories are created; existing lines are kept.
    """

    def __init__(self, run_id: str, log_path: str | Path) -> None:
        self.run_id = run_id
        self.log_path = Path(log_path)
        self.current_stage: str | None = None

        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self.log_path.open("a", encoding="utf-8")

    def __enter__(self) -> "RunLogger":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    def set_stage(self, stage: str | None) -> None:
        self.current_stage = stage

    def event(
        self,
        event_type: str,
        data: Mapping[str, Any] | None = None,
        level: str = "INFO",
        stage: str | None = None,
        rid: str | None = None,
    ) -> None:
        """Write one event.

        Parameters
        ----------
        event_type : str
            Event name, e.g. ``"scoring_plan"``.
        data : Mapping[str, Any] | None, optional
            JSON-serializable payload.
        level : str, optional
            One of ``LOG_LEVELS``, by default ``"INFO"``.
        stage : str | None, optional
            Stage tag; the current stage when omitted.
        rid : str | None, optional
            Record the event is about.

        Raises
        ------
        ValueError
            If ``level`` is not a known log level.
        """
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {level!r}")

        record = LogEvent(
            ts=get_iso_timestamp(),
            run_id=self.run_id,
            level=level,
            event=event_type,
            data=dict(data or {}),
            stage=self.current_stage if stage is None else stage,
            rid=rid,
        )
        self._file.write(json.dumps(asdict(record), ensure_ascii=False, separators=(",", ":")) + "\n")
        self._file.flush()

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def run_started(self, operation: str, parameters: Mapping[str, Any]) -> None:
        """Log the entry point and the effective configuration."""
        self.event("run_started", {"operation": operation, "parameters": dict(parameters)})

    def run_finished(
        self,
        status: str,
        duration_seconds: float,
        records_processed: int | None = None,
    ) -> None:
        """Log the end of a run.

        Raises
        ------
        ValueError
            If ``status`` is not one of ``RUN_STATUSES``.
        """
        if status not in RUN_STATUSES:
            raise ValueError(f"Unknown run status: {status!r}")

        data: dict[str, Any] = {"status": status, "duration_seconds": duration_seconds}
        if records_processed is not None:
            data["records_processed"] = records_processed
        self.event("run_finished", data, stage=None)

    def run_cancelled(self) -> None:
        """Log that the cancel token stopped the run during the current stage."""
        self.event("run_cancelled", level="WARN")

    def error(self, exc: BaseException, stage: str | None = None) -> None:
        """Log an exception with its formatted traceback."""
        self.event(
            "error",
            {
                "exception_class": type(exc).__name__,
                "message": str(exc),
                "traceback": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            },
            level="ERROR",
            stage=stage,
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def stage_started(self, stage: str, expected_records: int | None = None) -> None:
        """Open ``stage``; later events are tagged with it."""
        self.set_stage(stage)
        data = {} if expected_records is None else {"expected_records": expected_records}
        self.event("stage_started", data, stage=stage)

    def stage_finished(
        self,
        stage: str,
        duration_seconds: float,
        counters: Mapping[str, int] | None = None,
    ) -> None:
        """Close ``stage`` with its timing and counters."""
        data: dict[str, Any] = {"duration_seconds": duration_seconds}
        if counters:
            data["counters"] = dict(counters)
        self.event("stage_finished", data, stage=stage)
        self.set_stage(None)

    # ------------------------------------------------------------------
    # Engine events
    # ------------------------------------------------------------------

    def config_fallback(self, field_name: str, rejected: Any, default: Any) -> None:
        """WARN that a setting was replaced by its default."""
        self.event(
            "config_fallback",
            {"field": field_name, "rejected": repr(rejected), "default": default},
            level="WARN",
        )

    def duplicate_rid_skipped(self, rid: str) -> None:
        """WARN that a later record reused an rid and was left out."""
        self.event("duplicate_rid_skipped", level="WARN", rid=rid)

    def blocks_split(self, oversized_keys: int, chunk_size: int) -> None:
        """WARN that blocks above ``chunk_size`` records were cut into chunks."""
        self.event(
            "oversized_blocks_split",
            {"oversized_keys": oversized_keys, "chunk_size": chunk_size},
            level="WARN",
        )

    def rule_learned(self, rule: Mapping[str, Any]) -> None:
        self.event("rule_learned", rule)

    def rule_not_learned(self, reason: str, records: int, observed_minimums: Mapping[str, float]) -> None:
        """WARN that a confirmed cluster yielded no rule."""
        self.event(
            "rule_not_learned",
            {"reason": reason, "records": records, "observed_minimums": dict(observed_minimums)},
            level="WARN",
        )
