"""HTTP boundary: FastAPI app, routes and service container."""

from moriarty.api.app import create_app, run_server
from moriarty.api.services import DashboardServices

__all__ = ["DashboardServices", "create_app", "run_server"]
