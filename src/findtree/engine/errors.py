from __future__ import annotations


class ProducerContractError(ValueError):
    """Raised when the findings producer hands over malformed input (e.g. a violation without a rule)."""


class DoubleFinalizationError(RuntimeError):
    """Raised when a one-shot end-of-stream pass is asked to run a second time."""


class ReportFinalizedError(RuntimeError):
    """Raised when findings arrive after the report has been finalized."""


class TreeFrozenError(RuntimeError):
    """Raised when a finalized tree node is mutated."""
