"""
Retry helpers for transient ingestion failures.
"""


def backoff_delay(attempt: int, start: float, maximum: float) -> float:
    """
    Exponential backoff delay before retry number `attempt` (1-based).

    Examples:
        start=1, maximum=60 -> 1, 2, 4, 8, ... capped at 60
    """
    if attempt < 1:
        return 0.0
    return min(start * (2 ** (attempt - 1)), maximum)
