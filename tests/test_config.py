import pytest

from nl2pg import config
from nl2pg.config import ConfigurationError, Provider


def test_provider_coercion():
    assert config.get_provider("openai") is Provider.OPENAI
    assert config.get_provider(Provider.GOOGLE) is Provider.GOOGLE
    with pytest.raises(ConfigurationError):
        config.get_provider("azure")


def test_api_key_lookup_by_provider(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-openai")
    monkeypatch.setenv("GOOGLE_GENERATIVE_AI_API_KEY", "g-google")
    assert config.get_api_key("openai") == "sk-openai"
    assert config.get_api_key("google") == "g-google"


def test_missing_api_key_is_none(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    assert config.get_api_key(Provider.OPENAI) is None


def test_schema_and_temperature_defaults(monkeypatch):
    monkeypatch.delenv("NL2PG_SCHEMA", raising=False)
    monkeypatch.delenv("NL2PG_TEMPERATURE", raising=False)
    assert config.get_schema_name() == "public"
    assert config.get_temperature() == 0.0

    monkeypatch.setenv("NL2PG_SCHEMA", "sales")
    monkeypatch.setenv("NL2PG_TEMPERATURE", "0.2")
    assert config.get_schema_name() == "sales"
    assert config.get_temperature() == 0.2
