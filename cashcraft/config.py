import os

from dotenv import load_dotenv

load_dotenv()


class Settings:
    def __init__(self):
        self.PROJECT_NAME = "CashCraft Loans API"
        self.PROJECT_VERSION = "1.0.0"
        self.ENVIRONMENT = os.getenv("ENVIRONMENT", os.getenv("NODE_ENV", "production"))
        self.API_PREFIX = os.getenv("API_PREFIX", "/api")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

        # Database
        self.POSTGRES_USER = os.getenv("POSTGRES_USER")
        self.POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD")
        self.POSTGRES_DB = os.getenv("POSTGRES_DB")
        self.POSTGRES_HOST = os.getenv("POSTGRES_HOST")
        self.POSTGRES_PORT = os.getenv("POSTGRES_PORT")

        self.DATABASE_URL = os.getenv("DATABASE_URL") or (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )
        self.DATABASE_ECHO = self._flag(os.getenv("DATABASE_ECHO"))
        self.AUTO_CREATE_TABLES = self._flag(os.getenv("AUTO_CREATE_TABLES"))

        # JWT
        self.JWT_SECRET_KEY = self._load_secret(os.getenv("JWT_SECRET_KEY"))
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.ACCESS_TOKEN_EXPIRE_MINUTES = int(
            os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7)
        )

        # Passwords
        self.BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))

        # CORS
        self.FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    @staticmethod
    def _flag(value: str | None) -> bool:
        return (value or "").strip().lower() in ("1", "true", "yes", "on")

    @staticmethod
    def _load_secret(value: str | None) -> str | None:
        """Return the contents of *value* if it is a path to a file.

        JWT_SECRET_KEY may contain either the raw signing secret or a path to
        a mounted secret file. The file is read and its stripped contents
        returned; anything else is passed through unchanged.
        """
        if value and os.path.isfile(value):
            try:
                with open(value, "r", encoding="utf-8") as fh:
                    return fh.read().strip()
            except OSError:
                pass
        return value


settings = Settings()
