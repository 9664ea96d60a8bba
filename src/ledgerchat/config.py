import logging

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s:%(name)s:%(levelname)s:%(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_API_URL = "http://localhost:3000"
DEFAULT_FALLBACK_ERROR = "An error occurred"


class Settings(BaseSettings):
    """Runtime configuration for ledgerchat clients.

    Values come from ``LEDGERCHAT_*`` environment variables (or a
    ``.env`` file), except the OpenAI credentials which use the
    standard ``OPENAI_API_KEY`` and ``OPENAI_BASE_URL`` names.
    Keyword arguments take precedence over the environment.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGERCHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_base_url: str = Field(
        default=DEFAULT_API_URL,
        description="Root URL of the finance API",
    )
    api_token: str | None = Field(
        default=None,
        description="Bearer token sent to the finance API",
    )
    conversation_id: str | None = Field(
        default=None,
        description="Default conversation targeted by send()",
    )
    request_timeout: float = Field(
        default=600.0,
        gt=0,
        description="Seconds before a transport gives up",
    )
    fallback_error_message: str = Field(
        default=DEFAULT_FALLBACK_ERROR,
        description="Shown when a transport fails without a message of its own",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional file that configure_logging() also writes to",
    )
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("openai_api_key", "OPENAI_API_KEY"),
    )
    openai_base_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("openai_base_url", "OPENAI_BASE_URL"),
    )


def configure_logging(level: int = logging.INFO, log_file: str | None = None) -> None:
    """Install ledgerchat's log format on the root logger.

    ``log_file`` defaults to ``Settings().log_file``; when neither is
    set only a stream handler is installed.
    """
    log_file = log_file or Settings().log_file
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
    )
