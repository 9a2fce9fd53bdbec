"""Structured run logging for bnfdedupe.

Every engine entry point accepts an optional ``RunLogger``. When given,
stages emit append-only JSONL events describing what happened during a run.
"""

from bnfdedupe.runlog.helpers import generate_run_id
from bnfdedupe.runlog.logger import RUN_STATUSES, RunLogger
from bnfdedupe.runlog.models import LOG_EVENT_SCHEMA, LogEvent

__all__ = ["LOG_EVENT_SCHEMA", "RUN_STATUSES", "LogEvent", "RunLogger", "generate_run_id"]
