from __future__ import annotations
import os
from flask import Flask
from config import config_map
from extensions import db, migrate, login_manager, csrf
from sqlalchemy import inspect

def _seed_from_config(app):
    if not app.config.get("SEED_DEFAULT_ADMINS"):
        return
    with app.app_context():
        # таблица admins может ещё не быть создана (alembic upgrade и т.п.)
        if not inspect(db.engine).has_table("admins"):
            return

        from models import Admin  # локальный импорт, чтобы избежать циклов
        created = 0
        for a in app.config.get("DEFAULT_ADMINS", []):
            if Admin.query.filter_by(username=a["username"]).first():
                continue
            admin = Admin(username=a["username"], role=a["role"], is_active_flag=True)
            admin.set_password(a["password"])
            db.session.add(admin)
            created += 1
        if created:
            db.session.commit()

def register_blueprints(app: Flask) -> None:
    from blueprints.core import bp as core_bp
    from blueprints.auth import api_bp as auth_api_bp
    from blueprints.admins import api_bp as admins_api_bp
    from blueprints.courses import api_bp as courses_api_bp
    from blueprints.enrollments import api_bp as enrollments_api_bp
    from blueprints.reports import api_bp as reports_api_bp

    # core без префикса → '/health' в корне
    app.register_blueprint(core_bp)
    app.register_blueprint(auth_api_bp, url_prefix="/api/v1")
    app.register_blueprint(admins_api_bp, url_prefix="/api/v1")
    app.register_blueprint(courses_api_bp, url_prefix="/api/v1")
    app.register_blueprint(enrollments_api_bp, url_prefix="/api/v1")
    app.register_blueprint(reports_api_bp, url_prefix="/api/v1")

def create_app(config_name: str | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    cfg_name = config_name or os.getenv("FLASK_CONFIG", "default")
    app.config.from_object(config_map[cfg_name])
    app.json.sort_keys = False

    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        pass
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    register_blueprints(app)
    _seed_from_config(app)
    return app
