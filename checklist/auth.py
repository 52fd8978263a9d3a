import hmac
from functools import wraps

from flask import current_app, request

from .errors import Unauthorized


def _matches(given, expected) -> bool:
    return bool(given) and hmac.compare_digest(str(given).encode(), str(expected).encode())


def check_credentials(username, password) -> bool:
    cfg = current_app.config
    # both comparisons always run
    user_ok = _matches(username, cfg["ADMIN_USERNAME"])
    pass_ok = _matches(password, cfg["ADMIN_PASSWORD"])
    return user_ok and pass_ok


def admin_required(f):
    """Reject requests without `Authorization: Bearer <ADMIN_TOKEN>`."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not _matches(token.strip(), current_app.config["ADMIN_TOKEN"]):
            raise Unauthorized()
        return f(*args, **kwargs)
    return decorated_function
