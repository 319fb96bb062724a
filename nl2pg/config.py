"""
Configuration Module

Environment-driven settings and credential lookup for the language model
providers. Values are read from the process environment after loading an
optional ``.env`` file.
"""

import os
from enum import Enum
from typing import Optional

from dotenv import load_dotenv

from .plan import Nl2pgError

load_dotenv()


class ConfigurationError(Nl2pgError):
    """Raised when a required setting or credential is missing"""


class Provider(str, Enum):
    """Language model providers that can generate query plans"""
    OPENAI = "openai"
    GOOGLE = "google"


API_KEY_ENV = {
    Provider.OPENAI: "OPENAI_API_KEY",
    Provider.GOOGLE: "GOOGLE_GENERATIVE_AI_API_KEY",
}

DEFAULT_PROVIDER = Provider.OPENAI
DEFAULT_MODEL = "gpt-3.5-turbo-instruct"
DEFAULT_SCHEMA = "public"


def get_provider(value) -> Provider:
    """Coerce a provider tag (string or enum) into a Provider"""
    try:
        return Provider(value)
    except ValueError:
        choices = ", ".join(p.value for p in Provider)
        raise ConfigurationError(f"Unknown provider '{value}' (expected one of: {choices})") from None


def get_api_key(provider) -> Optional[str]:
    """Look up the credential for a provider; None when it is not set"""
    return os.getenv(API_KEY_ENV[get_provider(provider)])


def get_database_url() -> Optional[str]:
    return os.getenv("DATABASE_URL")


def get_schema_name() -> str:
    return os.getenv("NL2PG_SCHEMA", DEFAULT_SCHEMA)


def get_log_level() -> str:
    return os.getenv("NL2PG_LOG_LEVEL", "INFO")


def get_temperature() -> float:
    return float(os.getenv("NL2PG_TEMPERATURE", "0"))
