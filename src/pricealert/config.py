from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_name: str = "pricealert"
    create_tables: bool = False  # Local dev only; production schema comes from alembic
    coingecko_base_url: str = "https://api.coingecko.com"
    coingecko_api_key: str = ""
    coingecko_rate_per_second: float = 5.0
    http_timeout: float = 30.0
    aws_region: str = "ap-southeast-2"
    sender_email: str = "alerts@example.com"
    history_default_limit: int = 10
    history_max_limit: int = 100
    log_level: str = "INFO"
    log_json: bool = False
    debug: bool = False

    @property
    def database_url(self) -> str:
        return f"postgresql+asyncpg://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    class Config:
        env_file = ".env"


settings = Settings()
