"""HTTP routers."""

from portal_estimator.api import estimates, health

__all__ = ["estimates", "health"]
