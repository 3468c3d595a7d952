# blueprints/auth/routes.py
from __future__ import annotations
import logging
import time
from functools import wraps
from typing import Callable, Optional

from flask import Blueprint, request, jsonify, abort, current_app
from flask_login import login_user, logout_user, login_required, current_user
from flask_wtf.csrf import CSRFError, generate_csrf

from extensions import db, login_manager
from models import Admin, AdminRole

log = logging.getLogger(__name__)

api_bp = Blueprint("auth_api", __name__)

# ---- безопасные значения по умолчанию
DEFAULT_RL_MAX = 5
DEFAULT_RL_WIN = 300  # 5 минут
_login_attempts: dict[str, list[float]] = {}  # ключ: ip|username -> [timestamps]

ADMIN_ROLES = (AdminRole.ADMIN.value, AdminRole.SUPERADMIN.value)

@login_manager.user_loader
def load_user(uid: str) -> Optional[Admin]:
    try:
        return db.session.get(Admin, int(uid))
    except (TypeError, ValueError):
        return None

# ---------- rate limit ----------
def _rl_key(username: str) -> str:
    ip = request.headers.get("X-Forwarded-For", request.remote_addr or "0.0.0.0").split(",")[0].strip()
    return f"{ip}|{(username or '').lower()}"

def _rl_check_and_hit(username: str) -> bool:
    now = time.time()
    win = current_app.config.get("AUTH_RL_WINDOW", DEFAULT_RL_WIN)
    mx = current_app.config.get("AUTH_RL_MAX", DEFAULT_RL_MAX)
    key = _rl_key(username)
    bucket = _login_attempts.setdefault(key, [])
    # purge старых
    cutoff = now - win
    while bucket and bucket[0] < cutoff:
        bucket.pop(0)
    if len(bucket) >= mx:
        return False
    bucket.append(now)
    return True

# ---------- декораторы ролей ----------
def admin_required(fn: Callable):
    @wraps(fn)
    @login_required
    def wrapper(*args, **kwargs):
        if getattr(current_user, "role", None) not in ADMIN_ROLES:
            abort(403)
        return fn(*args, **kwargs)
    return wrapper

def superadmin_required(fn: Callable):
    @wraps(fn)
    @login_required
    def wrapper(*args, **kwargs):
        if getattr(current_user, "role", None) != AdminRole.SUPERADMIN.value:
            abort(403)
        return fn(*args, **kwargs)
    return wrapper

# ---------- обработчики 401/403/CSRF ----------
@login_manager.unauthorized_handler
def _unauth():
    return jsonify({"message": "Authentication required.", "code": "UNAUTHORIZED"}), 401

@api_bp.app_errorhandler(403)
def _forbidden(e):
    return jsonify({"message": "Forbidden.", "code": "FORBIDDEN"}), 403

@api_bp.app_errorhandler(CSRFError)
def _csrf_failed(e):
    return jsonify({"message": e.description, "code": "CSRF_FAILED"}), 400

# ---------- API ----------
@api_bp.get("/csrf")
def api_csrf():
    token = generate_csrf()
    resp = jsonify({"csrf": token})
    resp.set_cookie("csrf_token", token, samesite="Lax", httponly=False, path="/")
    return resp

@api_bp.post("/auth/login")
def api_login():
    payload = request.get_json(silent=True) or request.form or {}
    username = (payload.get("username") or "").strip()
    password = payload.get("password") or ""

    if not username or not password:
        return jsonify({"message": "Username and password are required.", "code": "MISSING_CREDENTIALS"}), 400

    if not _rl_check_and_hit(username):
        return jsonify({"message": "Too many login attempts.", "code": "TOO_MANY_ATTEMPTS"}), 429

    admin: Optional[Admin] = Admin.query.filter_by(username=username).first()
    if not admin or not admin.check_password(password):
        return jsonify({"message": "Invalid credentials.", "code": "INVALID_CREDENTIALS"}), 401

    if not admin.is_active:
        return jsonify({"message": "Account is disabled.", "code": "INACTIVE"}), 403

    login_user(admin, remember=True)
    # считаем только неудачные попытки
    _login_attempts.pop(_rl_key(username), None)
    log.info("admin logged in", extra={"event": "login", "admin_id": admin.id})
    return jsonify({"ok": True, "admin": {"id": admin.id, "username": admin.username, "role": admin.role}})

@api_bp.post("/auth/logout")
@login_required
def api_logout():
    logout_user()
    return jsonify({"ok": True})

@api_bp.get("/auth/me")
@admin_required
def api_me():
    return jsonify({"id": current_user.id, "username": current_user.username, "role": current_user.role})
