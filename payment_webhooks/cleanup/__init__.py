from .sweep import STEP_ORPHANS, STEP_REVALIDATE, STEP_STALE, CleanupReport, CleanupSweep

__all__ = ["STEP_ORPHANS", "STEP_REVALIDATE", "STEP_STALE", "CleanupReport", "CleanupSweep"]
