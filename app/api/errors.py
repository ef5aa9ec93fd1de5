"""JSON error handlers.

Every error leaves the app as ``{"error": <message>}``, the same body the SSO
hook returns for SSOError, so the host iframe only has one shape to parse.
"""
from flask import jsonify
from werkzeug.exceptions import HTTPException

# status -> message used when the abort() carried no description
DEFAULT_MESSAGES = {
    400: "Bad request.",
    401: "Authentication required.",
    403: "Forbidden.",
    404: "Not found.",
    405: "Method not allowed.",
}
INTERNAL_ERROR_MESSAGE = "Internal server error."


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        status = error.code or 500
        if status >= 500:
            app.logger.error(f"HTTP {status}: {error}")
            return jsonify({"error": INTERNAL_ERROR_MESSAGE}), status
        return jsonify({"error": error_message(error)}), status

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        app.logger.error(f"Unhandled exception: {error}", exc_info=True)
        return jsonify({"error": INTERNAL_ERROR_MESSAGE}), 500


def error_message(error: HTTPException) -> str:
    """Custom abort() descriptions win over the stock Werkzeug text."""
    description = getattr(error, "description", None)
    if description and description != type(error).description:
        return str(description)
    return DEFAULT_MESSAGES.get(error.code, str(error.name))
