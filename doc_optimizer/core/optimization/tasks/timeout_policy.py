"""
Per-call timeout budget.

Pure computation of how long one inference call may take, given the chunk
length and whether the model is still cold.

Dependencies: doc_optimizer.configs.pipeline
System role: Timeout budgeting for the resilient invoker
"""

from doc_optimizer.configs.pipeline import TimeoutSettings


def compute_timeout(length: int, is_cold_start: bool, settings: TimeoutSettings) -> float:
    """
    Compute the time budget for one inference call.

    Args:
        length: Chunk length in characters
        is_cold_start: True for the first call, while the model loads weights
        settings: Budget parameters

    Returns:
        float: Timeout in seconds

    Raises:
        ValueError: When length is negative
    """
    if length < 0:
        raise ValueError("length must be non-negative")
    if is_cold_start:
        return settings.cold_start_seconds
    return min(settings.base_seconds + length * settings.per_char_seconds, settings.max_seconds)


class TimeoutPolicy:
    """Callable wrapper binding `compute_timeout` to a settings instance."""

    def __init__(self, settings: TimeoutSettings | None = None) -> None:
        self._settings = settings or TimeoutSettings()

    @property
    def settings(self) -> TimeoutSettings:
        return self._settings

    def __call__(self, length: int, is_cold_start: bool = False) -> float:
        return compute_timeout(length, is_cold_start, self._settings)
