## accesszen/core/config.py

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings for the application
    """

    model_config = SettingsConfigDict(
        env_file=".env", extra="ignore", case_sensitive=False
    )

    environment: str = "development"
    app_name: str = "AccessZen Access Form Service"
    allowed_cors_urls: str = "*"

    db_host: Optional[str] = None
    db_port: str = "3306"
    db_user: Optional[str] = None
    db_password: Optional[str] = None
    db_database: str = "accesszen"
    sqlite_path: str = "./accesszen.db"

    redis_host: str = "localhost"
    redis_port: str = "6379"
    redis_username: Optional[str] = None
    redis_password: Optional[str] = None

    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-1"
    aws_ses_sender_email: Optional[str] = None
    s3_bucket_name: Optional[str] = None
    presigned_url_expiration: int = 7 * 24 * 3600

    # Hosted document stores cap membership ("in") queries; ids are looked up in batches of this size
    id_query_batch_size: int = 30
    document_fetch_timeout: int = 30

    log_level: str = "INFO"
    log_json: bool = False
    log_file: Optional[str] = None

    @property
    def db_url(self) -> str:
        """
        Sync database URL. Falls back to a local SQLite file when no MySQL host is configured.
        """
        if self.db_host:
            return f"mysql+pymysql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_database}"
        return f"sqlite:///{self.sqlite_path}"

    @property
    def redis_url(self) -> str:
        """
        Redis connection URL
        """
        if self.redis_username and self.redis_password:
            return f"redis://{self.redis_username}:{self.redis_password}@{self.redis_host}:{self.redis_port}"
        elif self.redis_password:
            return f"redis://:{self.redis_password}@{self.redis_host}:{self.redis_port}"
        else:
            return f"redis://{self.redis_host}:{self.redis_port}"

    @property
    def celery_broker(self) -> str:
        """
        Celery broker URL
        """
        return f"{self.redis_url}/1"

    @property
    def celery_backend(self) -> str:
        """
        Celery backend URL
        """
        return f"{self.redis_url}/2"


settings = Settings()
