"""HTTP surface of the analysis view."""

from cardnet.api.main import create_app
from cardnet.api.routes import router

__all__ = ["create_app", "router"]
