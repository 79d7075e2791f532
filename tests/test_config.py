from config import DEFAULT_OPENAI_MODEL, DEFAULT_PORT, Settings, load_settings


def test_defaults(monkeypatch):
    for name in ("OPENAI_API_KEY", "OPENAI_MODEL", "OPENAI_TEMPERATURE",
                 "CAMPAIGN_LLM_ENABLED", "PORT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    settings = load_settings()
    assert settings.openai_model == DEFAULT_OPENAI_MODEL
    assert settings.port == DEFAULT_PORT
    assert settings.log_level == "INFO"
    assert not settings.use_llm


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-secret")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4o")
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("CAMPAIGN_LLM_ENABLED", "true")
    settings = load_settings()
    assert settings.use_llm
    assert settings.openai_model == "gpt-4o"
    assert settings.port == 9000
    assert settings.log_level == "DEBUG"
    assert "sk-secret" not in repr(settings)


def test_llm_can_be_switched_off(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-secret")
    monkeypatch.setenv("CAMPAIGN_LLM_ENABLED", "off")
    assert not load_settings().use_llm
    assert not Settings(openai_api_key="k", llm_enabled=False).use_llm
