from .app_state import ACTIVE, BACKGROUND, INACTIVE, AppStateMonitor
from .scheduler import JOB_ID, RefreshScheduler, make_refresh_all

__all__ = [
    "ACTIVE",
    "BACKGROUND",
    "INACTIVE",
    "AppStateMonitor",
    "JOB_ID",
    "RefreshScheduler",
    "make_refresh_all",
]
