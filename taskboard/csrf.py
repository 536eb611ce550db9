"""
Anti-forgery tokens for state-changing requests.

One random token per browser session, kept in the signed Flask session
cookie. Forms send it as ``csrf_token``; scripts send it in the
``X-CSRF-Token`` header.
"""
import hmac
import logging
import secrets
from functools import wraps

from flask import jsonify, request, session

logger = logging.getLogger(__name__)

SESSION_KEY = "_csrf_token"
FORM_FIELD = "csrf_token"
HEADER_NAME = "X-CSRF-Token"


def issue_token() -> str:
    """Return the session's token, creating it on first use."""
    token = session.get(SESSION_KEY)
    if not token:
        token = secrets.token_urlsafe(32)
        session[SESSION_KEY] = token
    return token


def verify_token(provided: str) -> bool:
    expected = session.get(SESSION_KEY)
    if not expected or not provided:
        return False
    return hmac.compare_digest(str(provided), str(expected))


def _provided_token() -> str:
    token = request.headers.get(HEADER_NAME, "").strip()
    if not token:
        token = request.form.get(FORM_FIELD, "").strip()
    return token


def require_csrf(json_response: bool = False):
    """Decorator: reject requests without a valid anti-forgery token (403)."""
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            if not verify_token(_provided_token()):
                logger.warning("Rejected %s %s: bad anti-forgery token",
                               request.method, request.path)
                if json_response:
                    return jsonify({"message": "Invalid anti-forgery token"}), 403
                return "Invalid anti-forgery token", 403
            return f(*args, **kwargs)
        return decorated
    return decorator
