"""
FastAPI alert service.

Provides a REST API over the in-memory alert engine:
- GET /alerts, /alerts/history, /alerts/stats - Read accessors
- POST /alerts/evaluate - Evaluate a metric snapshot
- POST /alerts/trigger, PUT /alerts/thresholds - Administration
- GET /health - Service health check
"""

from src.api.app import create_app

__all__ = ["create_app"]
