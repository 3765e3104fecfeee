import os
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

MONGODB_URI = os.getenv("MONGODB_URI")
MONGODB_DB_NAME = os.getenv("MONGODB_DB_NAME", "quizchat")

NODE_ENV = os.getenv("NODE_ENV", "development")
PORT = int(os.getenv("PORT", "10000"))
CLIENT_URL = os.getenv("CLIENT_URL", "http://localhost:3000")

# Signing secret for issued access tokens; create_app refuses to start without one.
SECRET_KEY = os.getenv("JWT_SECRET_KEY") or os.getenv("SECRET_KEY")
JWT_EXPIRES_HOURS = int(os.getenv("JWT_EXPIRES_HOURS", "24"))

DEFAULT_CORS_ORIGINS = [
    "https://s72-dhruv-malviya-doraemon-chat-bot.vercel.app",
    "http://localhost:3000",
]
CORS_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()
] or DEFAULT_CORS_ORIGINS

CLIENT_BUILD_DIR = os.getenv(
    "CLIENT_BUILD_DIR", os.path.join(BASE_DIR, "client", "build")
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

API_PREFIX = "/api"
MAX_BODY_BYTES = 10 * 1024 * 1024


def is_production(environment):
    return environment == "production"


def flask_config():
    """Settings copied into app.config by the application factory."""
    return {
        "ENVIRONMENT": NODE_ENV,
        "SECRET_KEY": SECRET_KEY,
        "JWT_SECRET_KEY": SECRET_KEY,
        "JWT_EXPIRES_HOURS": JWT_EXPIRES_HOURS,
        "CORS_ORIGINS": list(CORS_ORIGINS),
        "CLIENT_BUILD_DIR": CLIENT_BUILD_DIR,
        "MAX_CONTENT_LENGTH": MAX_BODY_BYTES,
        "MONGODB_URI": MONGODB_URI,
        "MONGODB_DB_NAME": MONGODB_DB_NAME,
    }
