import os
from dotenv import load_dotenv

# load .env from backend folder
basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, ".env"))


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    try:
        return int(v)
    except ValueError:
        return default


class Config:

    # -------------------------
    # Flask core
    # -------------------------
    SECRET_KEY = os.getenv("SECRET_KEY", "fallback-secret")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # -------------------------
    # Database
    # -------------------------
    DB_USER = os.getenv("DB_USER")
    DB_PASSWORD = os.getenv("DB_PASSWORD")
    DB_HOST = os.getenv("DB_HOST")
    DB_PORT = os.getenv("DB_PORT")
    DB_NAME = os.getenv("DB_NAME")

    SQLALCHEMY_DATABASE_URI = os.getenv("SQLALCHEMY_DATABASE_URI")
    if not SQLALCHEMY_DATABASE_URI:
        if all([DB_USER, DB_PASSWORD, DB_HOST, DB_PORT, DB_NAME]):
            SQLALCHEMY_DATABASE_URI = (
                f"mysql+pymysql://{DB_USER}:{DB_PASSWORD}"
                f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
            )
        else:
            SQLALCHEMY_DATABASE_URI = f"sqlite:///{os.path.join(basedir, 'trip_linker.db')}"

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # -------------------------
    # JWT
    # -------------------------
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", SECRET_KEY)

    # -------------------------
    # Trip linking
    # -------------------------
    TRIP_LINK_BATCH_LIMIT = _env_int("TRIP_LINK_BATCH_LIMIT", 60)
    TRIP_LINK_BATCH_PER_USER = _env_int("TRIP_LINK_BATCH_PER_USER", 12)
    TRIP_LINK_TRIP_LIMIT = _env_int("TRIP_LINK_TRIP_LIMIT", 25)

    # gemini | deepseek | groq
    TRIP_LINK_PROVIDER = os.getenv("TRIP_LINK_PROVIDER", "deepseek")
    # Empty -> use the model named in the prompt file
    TRIP_LINK_MODEL = os.getenv("TRIP_LINK_MODEL", "")
    TRIP_LINK_TIMEOUT_S = _env_int("TRIP_LINK_TIMEOUT_S", 60)
    TRIP_LINK_PROMPT_PATH = os.getenv(
        "TRIP_LINK_PROMPT_PATH",
        os.path.join(basedir, "trip_linking", "prompts", "trip-linking.prompt.yml"),
    )

    TRIP_LINK_STALE_MINUTES = _env_int("TRIP_LINK_STALE_MINUTES", 30)
    TRIP_LINK_LEASE_SECONDS = _env_int("TRIP_LINK_LEASE_SECONDS", 900)
    TRIP_LINK_WORKERS = _env_int("TRIP_LINK_WORKERS", 1)
    TRIP_LINK_INTERVAL_MINUTES = _env_int("TRIP_LINK_INTERVAL_MINUTES", 15)
