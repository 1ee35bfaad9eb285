"""Exponential backoff between gate rounds."""
from dataclasses import dataclass


@dataclass(frozen=True)
class BackoffPolicy:
    """Doubling delay with a hard cap.

    ``delay(attempt) = min(base_delay * 2 ** (attempt - 1), max_delay)``
    """
    base_delay: float = 3.0
    max_delay: float = 30.0
    factor: float = 2.0

    def __post_init__(self):
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("Backoff delays must be non-negative")

    def delay(self, attempt: int) -> float:
        """Seconds to wait after round ``attempt`` (1-based)."""
        if attempt < 1:
            raise ValueError(f"Attempt must be >= 1, got {attempt}")
        # Stop growing once the cap is hit so large attempts don't overflow.
        delay = float(self.base_delay)
        for _ in range(attempt - 1):
            if delay >= self.max_delay:
                break
            delay *= self.factor
        return min(delay, float(self.max_delay))

    def schedule(self, attempts: int):
        """Delays for rounds 1..attempts."""
        return [self.delay(n) for n in range(1, attempts + 1)]
