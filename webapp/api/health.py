from flask import jsonify
from sqlalchemy import text

from . import bp
from ..extensions import db
from core.settings import settings
from core.time import utc_now_isoformat


@bp.get("/health")
def health():
    """Readiness probe checking database and originals directory."""
    ok = True
    details = {}

    try:
        db.session.execute(text("SELECT 1"))
        details["db"] = "ok"
    except Exception:
        ok = False
        details["db"] = "error"

    details["originals_dir"] = "ok" if settings.originals_directory.is_dir() else "missing"

    details["status"] = "ok" if ok else "error"
    details["server_time"] = utc_now_isoformat()
    return jsonify(details), 200 if ok else 503
