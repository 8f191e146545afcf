import os

from dotenv import load_dotenv
from flask_login import LoginManager
from flask_sqlalchemy import SQLAlchemy

load_dotenv()

db = SQLAlchemy()
login = LoginManager()


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev_secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///chatarrera.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = _env_bool("SQLALCHEMY_ECHO")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # optimistic retries for a stock posting that lost a concurrent write
    POSTING_MAX_RETRIES = int(os.getenv("POSTING_MAX_RETRIES", "3"))
    MAX_TRANSACTION_LINES = int(os.getenv("MAX_TRANSACTION_LINES", "50"))
