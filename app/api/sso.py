"""SSO bridge request hook.

Intercepts requests carrying ``?sso_token=<jwt>`` from the trusted external
identity provider, reconciles the caller onto a local account and redirects
through the local exchange endpoint so the host can establish its session.

Requests without a token, or on a server without a configured secret, fall
through to the normal route untouched.
"""
from __future__ import annotations
import logging

from flask import Flask, current_app, jsonify, redirect, request

from app.core.errors import SSOError, Unexpected
from app.core.pipeline import SSOPipeline
from app.core.stores import StoreError

logger = logging.getLogger(__name__)


def init_sso(app: Flask, cfg, stores) -> SSOPipeline:
    """Build the pipeline for this app and install the request hook."""
    pipeline = SSOPipeline(cfg, stores)
    app.config["SSO_PIPELINE"] = pipeline

    # Honour SSO_DEFAULT_MULTI_USER once at startup
    try:
        pipeline.bootstrapper.ensure_default_enabled()
    except StoreError as exc:
        logger.error("[SSO] Boot-time multi-user check failed: %s", exc)

    app.before_request(sso_bridge)
    return pipeline


def sso_bridge():
    """before_request hook: returns a response only when the bridge handles the request."""
    cfg = current_app.config["APP_CONFIG"]
    token = request.args.get(cfg.token_param)
    if not token:
        return None

    pipeline: SSOPipeline = current_app.config["SSO_PIPELINE"]
    try:
        outcome = pipeline.run(token, request.path)
    except SSOError as error:
        return jsonify(error.to_dict()), error.status
    except Exception as exc:
        current_app.logger.error(f"[SSO] Unexpected error: {exc}", exc_info=True)
        return jsonify(Unexpected().to_dict()), Unexpected.status

    if outcome.passthrough:
        return None
    return redirect(outcome.redirect_url, code=302)
