from .progress_stats import (
    ProgressStats,
    ProgressStatsInput,
    collect_progress_stats,
)

__all__ = [
    "ProgressStats",
    "ProgressStatsInput",
    "collect_progress_stats",
]
