"""Boundary REST API (FastAPI).

Run with ``agency-spine serve`` or ``uvicorn --factory agency_spine.api:create_app``.
"""

from agency_spine.api.app import create_app

__all__ = ["create_app"]
