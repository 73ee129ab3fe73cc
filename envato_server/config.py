import os


def _database_url() -> str:
    url = os.environ.get("DATABASE_URL", "sqlite:///local.db")
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


def _flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).lower() in {"1", "true", "yes", "on"}


class Settings:
    SECRET_KEY = os.environ.get("APP_SECRET", "change_this_in_env")
    ENVATO_TOKEN = os.environ.get("ENVATO_TOKEN", "")
    SUPPORT_MAILBOX = os.environ.get("SUPPORT_MAILBOX", "")
    DATABASE_URL = _database_url()

    # (connect, read)
    ENVATO_TIMEOUT = (
        float(os.environ.get("ENVATO_CONNECT_TIMEOUT", "6")),
        float(os.environ.get("ENVATO_READ_TIMEOUT", "15")),
    )
    TOKEN_MAX_AGE = int(os.environ.get("TOKEN_MAX_AGE", str(86400 * 30)))

    HELPSCOUT_SECRET = os.environ.get("HELPSCOUT_SECRET", "")

    SENDGRID_API_KEY = os.environ.get("SENDGRID_API_KEY", "")
    MAIL_FROM = os.environ.get("MAIL_FROM", "support@example.com")
    MAIL_FROM_NAME = os.environ.get("MAIL_FROM_NAME", "Support")
    SENDGRID_SANDBOX = _flag("SENDGRID_SANDBOX")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_FILE = os.environ.get("LOG_FILE", "")

    def __init__(self, **overrides):
        for key, value in overrides.items():
            if not hasattr(type(self), key):
                raise AttributeError(f"unknown setting: {key}")
            setattr(self, key, value)


settings = Settings()
