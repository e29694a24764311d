from core.db import db
from flask_smorest import Api

api = Api()

__all__ = ["api", "db"]
