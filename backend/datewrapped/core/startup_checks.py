def validate_production_settings(settings) -> None:
    if getattr(settings, "DEBUG", False):
        return

    insecure_jwt_secrets = {
        "your-secret-key-change-in-production",
        "your-secret-key",
        "secret",
    }
    jwt_secret = getattr(settings, "JWT_SECRET", "") or ""
    if (not jwt_secret) or (jwt_secret in insecure_jwt_secrets) or (len(jwt_secret) < 32):
        raise RuntimeError("JWT_SECRET must be set to a strong value in production")

    if not (getattr(settings, "OPENAI_API_KEY", "") or "").strip():
        raise RuntimeError("OPENAI_API_KEY must be set in production")

    max_templates = int(getattr(settings, "WRAPPED_MAX_TEMPLATES", 0) or 0)
    if max_templates < 1:
        raise RuntimeError("WRAPPED_MAX_TEMPLATES must be at least 1")
