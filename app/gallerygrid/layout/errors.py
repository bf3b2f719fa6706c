from __future__ import annotations


class LayoutInvariantError(RuntimeError):
    """Raised when partitioner, builder and solver disagree about a row.

    Never raised for degenerate item data; only for states the layout code
    itself should make unreachable (empty rows, unknown patterns).
    """
