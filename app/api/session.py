"""Local session exchange endpoint.

Redeems a single-use exchange token issued by the SSO bridge and stores the
resolved user in the server-side Flask session.
"""
from __future__ import annotations

from flask import Blueprint, current_app, jsonify, redirect, request, session

from app.core.stores import StoreError


def create_blueprint(exchange_path: str = "/sso/simple") -> Blueprint:
    """Build the session blueprint with the configured exchange path."""
    bp = Blueprint("session", __name__)
    bp.add_url_rule(exchange_path, "exchange", exchange)
    bp.add_url_rule("/me", "me", me)
    return bp


def safe_redirect_target(target: str | None) -> str:
    """Only allow local absolute paths; everything else lands on /."""
    if not target or not target.startswith("/"):
        return "/"
    if target.startswith("//") or target.startswith("/\\"):
        return "/"
    return target


def exchange():
    """GET <exchange_path>?token=...&redirectTo=..."""
    token = request.args.get("token", "")
    if not token:
        return jsonify({"error": "Missing session token."}), 401

    stores = current_app.config["SSO_STORES"]
    try:
        user_id = stores.tokens.redeem(token)
        user = stores.users.get_by_id(user_id) if user_id is not None else None
    except StoreError as exc:
        current_app.logger.error(f"[SSO] Failed to redeem exchange token: {exc}")
        return jsonify({"error": "Failed to establish session."}), 500

    if user is None:
        current_app.logger.warning("[SSO] Exchange token invalid, expired or already used.")
        return jsonify({"error": "Invalid or expired session token."}), 401

    session.clear()
    session["user_id"] = user.id
    session["username"] = user.username
    session["role"] = user.role
    current_app.logger.info(f"[SSO] Session established for {user.username}")

    return redirect(safe_redirect_target(request.args.get("redirectTo")), code=302)


def me():
    """Return the user of the current local session."""
    if "user_id" not in session:
        return jsonify({"error": "Not authenticated"}), 401
    return jsonify({
        "id": session["user_id"],
        "username": session.get("username"),
        "role": session.get("role"),
    })
