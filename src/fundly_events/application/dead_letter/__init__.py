"""Application – dead-letter queue."""
from fundly_events.application.dead_letter.queue import (
    DeadLetterEntry,
    DeadLetterQueue,
    DeadLetterStats,
    Redeliver,
    ReprocessResult,
)

__all__ = ["DeadLetterEntry", "DeadLetterQueue", "DeadLetterStats", "Redeliver", "ReprocessResult"]
