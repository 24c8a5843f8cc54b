from toolshed.core.time.abc import Time
from toolshed.core.time.real import RealTime

__all__ = ["RealTime", "Time"]
