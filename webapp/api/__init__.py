from flask_smorest import Blueprint

bp = Blueprint("api", __name__, description="local image provider API")

from . import health  # noqa: E402,F401
from . import local_image_provider  # noqa: E402,F401
