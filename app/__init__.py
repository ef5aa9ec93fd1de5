"""SSO bridge Flask application package.

To use the Flask app:
    from app.flask_app import create_app

To run the reconciliation pipeline without Flask:
    from app.core.pipeline import SSOPipeline
"""
# Note: flask_app is not imported here so the core can be used without
# building an application (and without loading settings at import time)
