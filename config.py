from __future__ import annotations
import os
from pathlib import Path

class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    BASE_DIR = Path(__file__).resolve().parent
    # SQLite-файл в каталоге проекта
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'app.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    WTF_CSRF_TIME_LIMIT = None
    WTF_CSRF_HEADERS = ["X-CSRF-Token", "X-CSRFToken"]

    AUTH_RL_MAX = 5
    AUTH_RL_WINDOW = 300  # 5 минут

    MIN_HOLDER_AGE = 14
    # upsert (как сейчас): без удаления и без пересчёта билетов; reconcile: с пересчётом
    ENROLLMENT_UPDATE_MODE = os.getenv("ENROLLMENT_UPDATE_MODE", "upsert")

    SEED_DEFAULT_ADMINS = False
    DEFAULT_ADMINS: list[dict] = []

class DevConfig(BaseConfig):
    DEBUG = True
    SEED_DEFAULT_ADMINS = True
    DEFAULT_ADMINS = [
        {"username": "superadmin", "password": "pass", "role": "SUPERADMIN"},
        {"username": "admin", "password": "pass", "role": "ADMIN"},
    ]

class ProdConfig(BaseConfig):
    DEBUG = False
    SEED_DEFAULT_ADMINS = False

class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    WTF_CSRF_ENABLED = False
    SEED_DEFAULT_ADMINS = False

config_map = {
    "dev": DevConfig,
    "prod": ProdConfig,
    "test": TestConfig,
    "default": DevConfig,
}
