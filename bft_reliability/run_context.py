# bft_reliability/run_context.py
"""
Run Context - Tag log records with the simulation run they belong to

Every log entry emitted during a harness run carries the run id:
    [2026-10-18T00:00:00] [run-id:run-3f1c9a0b2d4e] Run complete: ...

Run ids are derived from the run's inputs, not generated randomly, so the
same configuration always logs under the same id.
"""

import hashlib
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

# Context variable for run ID (safe across threads and tasks)
run_id_var: ContextVar[str] = ContextVar("run_id", default="no-run-id")


def get_run_id() -> str:
    """Get current run ID from context"""
    return run_id_var.get()


def derive_run_id(*parts: object) -> str:
    """Stable run ID from the given parts"""
    digest = hashlib.sha256("|".join(str(p) for p in parts).encode("utf-8")).hexdigest()
    return f"run-{digest[:12]}"


@contextmanager
def run_context(run_id: str) -> Iterator[str]:
    """Set the run ID for the duration of a block"""
    token = run_id_var.set(run_id)
    try:
        yield run_id
    finally:
        run_id_var.reset(token)


class RunIdFilter(logging.Filter):
    """Logging filter to inject the run ID into log records"""

    def filter(self, record):
        record.run_id = get_run_id()
        return True
