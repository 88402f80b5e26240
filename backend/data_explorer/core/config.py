import json
import warnings
from typing import Annotated, Any, Literal

from pydantic import (
    AnyUrl,
    BeforeValidator,
    HttpUrl,
    PostgresDsn,
    computed_field,
    model_validator,
)
from pydantic_core import MultiHostUrl
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",")]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


def parse_table_list(v: Any) -> list[str]:
    if isinstance(v, str):
        if v.startswith("["):
            return json.loads(v)
        return [i.strip() for i in v.split(",") if i.strip()]
    return v


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Use top level .env file (one level above ./backend/)
        env_file="../.env",
        env_ignore_empty=True,
        extra="ignore",
    )
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    PROJECT_NAME: str = "Data Explorer"
    SENTRY_DSN: HttpUrl | None = None

    # Store DB (query templates live here)
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> PostgresDsn:
        return MultiHostUrl.build(
            scheme="postgresql+psycopg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_SERVER,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        )

    # Target DB (the database queries run against). Defaults to the store DB.
    EXPLORER_DATABASE_URL: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def explorer_conninfo(self) -> str:
        if self.EXPLORER_DATABASE_URL:
            return self.EXPLORER_DATABASE_URL
        return str(
            MultiHostUrl.build(
                scheme="postgresql",
                username=self.POSTGRES_USER,
                password=self.POSTGRES_PASSWORD,
                host=self.POSTGRES_SERVER,
                port=self.POSTGRES_PORT,
                path=self.POSTGRES_DB,
            )
        )

    # Redis (id allocation lock, readiness)
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str | None = None
    CACHE_ENABLED: bool = False

    @property
    def redis_url(self) -> str:
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # Target DB connection pool
    EXTERNAL_DB_CONNECT_TIMEOUT: int = 10
    EXTERNAL_DB_STATEMENT_TIMEOUT: float | None = 30.0  # seconds; None/0 = no limit
    EXTERNAL_DB_POOL_SIZE: int = 5
    EXTERNAL_DB_POOL_MAX_AGE_SEC: int = 600

    # Explorer
    EXPLORER_ENABLED: bool = True
    EXPLORER_DEFAULT_LIMIT: int = 250
    EXPLORER_ADMIN_PATH: str = "/admin/plugins/explorer"
    EXPLORER_HOSTNAME: str = "localhost"
    EXPLORER_FAVORED_TABLES: Annotated[
        list[str] | str, BeforeValidator(parse_table_list)
    ] = [
        "posts",
        "topics",
        "users",
        "categories",
        "badges",
        "groups",
        "notifications",
        "post_actions",
        "site_settings",
    ]
    EXPLORER_ENUMS_FILE: str | None = None
    EXPLORER_SCHEMA_VERSION_TABLE: str = "schema_migrations"

    def _check_default_secret(self, var_name: str, value: str | None) -> None:
        if not value:
            message = (
                f'The value of {var_name} is empty, '
                "for security, please set it, at least for deployments."
            )
            if self.ENVIRONMENT == "local":
                warnings.warn(message, stacklevel=1)
            else:
                raise ValueError(message)

    @model_validator(mode="after")
    def _enforce_non_default_secrets(self) -> Self:
        self._check_default_secret("POSTGRES_PASSWORD", self.POSTGRES_PASSWORD)
        if self.EXPLORER_DEFAULT_LIMIT < 1:
            raise ValueError("EXPLORER_DEFAULT_LIMIT must be at least 1")
        return self


settings = Settings()  # type: ignore
