from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load .env if present
load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    api_base_url: str = os.getenv("API_BASE_URL", "https://api.example.com")
    http_timeout: float = float(os.getenv("HTTP_TIMEOUT", "30"))
    forward_connect_retries: int = int(os.getenv("FORWARD_CONNECT_RETRIES", "2"))
    token_refresh_buffer_seconds: int = int(os.getenv("TOKEN_REFRESH_BUFFER_SECONDS", "300"))

    app_env: str = os.getenv("APP_ENV", "development")
    session_cookie_name: str = os.getenv("SESSION_COOKIE_NAME", "dashboard_session")
    session_cookie_max_age_days: int = int(os.getenv("SESSION_COOKIE_MAX_AGE_DAYS", "7"))

    session_store: str = os.getenv("SESSION_STORE", "memory")  # memory|sqlite
    session_db_path: str = os.getenv("SESSION_DB_PATH", ".dashboard_sessions.sqlite")
    capture_identity_on_login: bool = _flag("CAPTURE_IDENTITY_ON_LOGIN", "true")

    auth_pincode_path: str = os.getenv("AUTH_PINCODE_PATH", "/v2/authenticate/pincode")
    auth_otp_path: str = os.getenv("AUTH_OTP_PATH", "/v1/authenticate/otp")
    auth_refresh_path: str = os.getenv("AUTH_REFRESH_PATH", "/v1/authenticate/refresh")
    auth_forgot_password_path: str = os.getenv(
        "AUTH_FORGOT_PASSWORD_PATH", "/legacy/api/mobile/authentication/authenticate/forgot-password"
    )
    identity_user_path: str = os.getenv("IDENTITY_USER_PATH", "/v1/users/me")
    identity_customer_path: str = os.getenv("IDENTITY_CUSTOMER_PATH", "/v1/customers/me")

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def cookie_secure(self) -> bool:
        return self.app_env == "production"

    @property
    def session_cookie_max_age(self) -> int:
        return self.session_cookie_max_age_days * 24 * 60 * 60


settings = Settings()
