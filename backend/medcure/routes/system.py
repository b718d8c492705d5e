# backend/medcure/routes/system.py
"""
System health endpoint.

Returns:
- 200: database reachable
- 503: database unreachable
"""

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from medcure.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


@system_bp.get("/health")
def health():
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {"status": "unhealthy", "timestamp": to_utc_z(utcnow()), "database": "unreachable"}, 503

    return {"status": "healthy", "timestamp": to_utc_z(utcnow()), "database": "ok"}, 200
