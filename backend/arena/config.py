# arena/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file

# Built-in blocklist of disposable/temporary email providers.
# Override with a comma-separated DISPOSABLE_EMAIL_DOMAINS in .env
DEFAULT_DISPOSABLE_DOMAINS = [
    "10minutemail.com",
    "guerrillamail.com",
    "mailinator.com",
    "tempmail.com",
    "tempmailo.com",
    "trashmail.com",
    "yopmail.com",
    "fakeinbox.com",
    "getnada.com",
    "sharklasers.com",
    "dispostable.com",
]


def _csv_env(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "Multi-Model Chat Arena API"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3001"))

    # CORS origins for frontend
    CORS_ORIGINS: list[str] = _csv_env("CORS_ORIGINS", [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ])

    # Session tokens (HS256); use a strong secret in production
    jwt_secret: str = os.getenv("JWT_SECRET", "dev_secret_change_me")
    jwt_expires_minutes: int = int(os.getenv("JWT_EXPIRES_MINUTES", str(7 * 24 * 60)))  # Default: 7 days

    # Signup guard: lowercase domains rejected at signup
    disposable_email_domains: list[str] = [d.lower() for d in _csv_env("DISPOSABLE_EMAIL_DOMAINS", DEFAULT_DISPOSABLE_DOMAINS)]

    # Pollinations (text / image / audio generation passthrough)
    pollinations_api_key: str | None = os.getenv("POLLINATIONS_API_KEY")
    pollinations_text_url: str = os.getenv("POLLINATIONS_TEXT_URL", "https://text.pollinations.ai")
    pollinations_image_url: str = os.getenv("POLLINATIONS_IMAGE_URL", "https://image.pollinations.ai/prompt")
    generation_timeout: float = float(os.getenv("GENERATION_TIMEOUT", "30"))
    # Models served by the backend passthrough instead of the in-browser SDK
    pollinations_text_models: list[str] = _csv_env("POLLINATIONS_TEXT_MODELS", ["mistral"])

    # Community battles: flip expired battles inactive when the server starts
    battle_sweep_on_startup: bool = os.getenv("BATTLE_SWEEP_ON_STARTUP", "true").lower() in ("true", "1", "yes")

settings = Settings()  # Instantiate configuration
