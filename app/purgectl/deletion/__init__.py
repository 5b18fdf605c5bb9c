"""Scoped bulk deletion.

This module provides scope resolution, post-order tree walking, batch
deletion with per-path error isolation, and run reporting.
"""

from purgectl.deletion.deleter import BatchDeleter
from purgectl.deletion.errors import (
    BudgetExceeded,
    DeletionError,
    InvalidScopeError,
    PurgeError,
    TraversalError,
)
from purgectl.deletion.models import (
    CandidateEntry,
    EntryType,
    ErrorKind,
    ErrorRecord,
    ErrorStage,
    ExitCode,
    RunSummary,
)
from purgectl.deletion.reporter import emit, render_summary_table, report
from purgectl.deletion.runner import DeletionRunner, RunnerState, RunResult, exit_code_for
from purgectl.deletion.scope import Scope, make_eligible, resolve
from purgectl.deletion.walker import TreeWalker

__all__ = [
    "BatchDeleter",
    "BudgetExceeded",
    "CandidateEntry",
    "DeletionError",
    "DeletionRunner",
    "EntryType",
    "ErrorKind",
    "ErrorRecord",
    "ErrorStage",
    "ExitCode",
    "InvalidScopeError",
    "PurgeError",
    "RunResult",
    "RunSummary",
    "RunnerState",
    "Scope",
    "TraversalError",
    "TreeWalker",
    "emit",
    "exit_code_for",
    "make_eligible",
    "render_summary_table",
    "report",
    "resolve",
]
