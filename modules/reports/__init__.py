"""Reports module package."""

from flask import Blueprint

bp = Blueprint("reports", __name__, url_prefix="/api/reports")

from . import routes  # noqa: E402  pylint: disable=wrong-import-position

__all__ = ["bp", "routes"]
