from .routes import api_bp, admin_required, superadmin_required  # noqa: F401
