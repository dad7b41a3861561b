import logging
from typing import List
from google.cloud import secretmanager
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

def get_secret(project_id: str, secret_id: str, version_id: str = "latest") -> str:
    try:
        client = secretmanager.SecretManagerServiceClient()
        name = f"projects/{project_id}/secrets/{secret_id}/versions/{version_id}"
        response = client.access_secret_version(request={"name": name})
        return response.payload.data.decode('UTF-8')
    except Exception as e:
        logger.warning(f"Could not fetch secret {secret_id}: {e}")
        return ""

class Settings(BaseSettings):
    # Optional: when set, secrets are pulled from Secret Manager
    PROJECT_ID: str = ""

    DATABASE_URL: str = "sqlite:///./psycheverse.db"

    # Auth
    JWT_SECRET: str = "psycheverse-admin-secret-key"
    JWT_ALGORITHM: str = "HS256"
    TOKEN_EXPIRE_HOURS: int = 24
    LOGIN_RATE_LIMIT: str = "10/minute"

    # Bootstrap admin, created once if missing
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_EMAIL: str = "admin@psycheverse.org"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"

    STRIPE_API_KEY: str = ""

    # App Config
    UPLOAD_DIR: str = "uploads"
    CORS_ORIGINS: str = "http://localhost:3000"
    ENABLE_TRACING: str = "false"
    DEBUG: str = "false"

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def tracing_enabled(self) -> bool:
        return self.ENABLE_TRACING.lower() == "true"

    def load_secrets(self):
        if not self.PROJECT_ID:
            logger.info("PROJECT_ID not set, using environment configuration only.")
            return

        jwt_secret = get_secret(self.PROJECT_ID, "JWT_SECRET")
        if jwt_secret: self.JWT_SECRET = jwt_secret

        db_url_secret = get_secret(self.PROJECT_ID, "DATABASE_URL")
        if db_url_secret: self.DATABASE_URL = db_url_secret

        stripe_secret = get_secret(self.PROJECT_ID, "STRIPE_API_KEY")
        if stripe_secret: self.STRIPE_API_KEY = stripe_secret

settings = Settings()
settings.load_secrets()
