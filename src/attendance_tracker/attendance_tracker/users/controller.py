from __future__ import annotations

import logging

from flask import Flask, jsonify, request, session

from ..core.exceptions import AuthenticationError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        body = request.get_json(silent=True) or {}
        s_user = container.auth_service.authenticate(str(body.get("email") or ""), str(body.get("password") or ""))

        session.clear()
        session.permanent = bool(body.get("rememberMe"))

        session["user_id"] = s_user.user_id
        session["name"] = s_user.full_name
        session["email"] = s_user.email
        session["role"] = s_user.role.value
        session["dept_id"] = s_user.dept_id

        logger.info("User %s logged in", s_user.user_id)
        return jsonify({"success": True, "message": "Logged in", "user": s_user.to_dict()})

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True, "message": "Logged out"})

    @app.route("/api/auth/me", methods=["GET"], endpoint="me")
    def me():
        if "user_id" not in session:
            raise AuthenticationError("Please log in to continue")
        return jsonify(
            {
                "success": True,
                "user": {
                    "id": session["user_id"],
                    "name": session.get("name"),
                    "email": session.get("email"),
                    "role": session.get("role"),
                    "departmentId": session.get("dept_id"),
                },
            }
        )
