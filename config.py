import os

from dotenv import load_dotenv

load_dotenv()

# Environment variable names.
ENV_OPENAI_API_KEY = "OPENAI_API_KEY"
ENV_OPENAI_MODEL = "OPENAI_MODEL"
ENV_OPENAI_TEMPERATURE = "OPENAI_TEMPERATURE"
ENV_LLM_ENABLED = "CAMPAIGN_LLM_ENABLED"
ENV_PORT = "PORT"
ENV_LOG_LEVEL = "LOG_LEVEL"

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.3
DEFAULT_PORT = 8080
DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def _env_flag(name, default=True):
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


class Settings:
    """Runtime settings resolved from the environment."""

    def __init__(self, openai_api_key=None, openai_model=DEFAULT_OPENAI_MODEL,
                 temperature=DEFAULT_TEMPERATURE, llm_enabled=True,
                 port=DEFAULT_PORT, log_level=DEFAULT_LOG_LEVEL):
        self.openai_api_key = openai_api_key
        self.openai_model = openai_model
        self.temperature = temperature
        self.llm_enabled = llm_enabled
        self.port = port
        self.log_level = log_level

    @property
    def use_llm(self):
        return self.llm_enabled and bool(self.openai_api_key)

    def __repr__(self):
        # Never print the key itself.
        return (f"Settings(model={self.openai_model!r}, use_llm={self.use_llm}, "
                f"port={self.port}, log_level={self.log_level!r})")


def load_settings():
    return Settings(
        openai_api_key=os.getenv(ENV_OPENAI_API_KEY) or None,
        openai_model=os.getenv(ENV_OPENAI_MODEL) or DEFAULT_OPENAI_MODEL,
        temperature=float(os.getenv(ENV_OPENAI_TEMPERATURE) or DEFAULT_TEMPERATURE),
        llm_enabled=_env_flag(ENV_LLM_ENABLED),
        port=int(os.getenv(ENV_PORT) or DEFAULT_PORT),
        log_level=(os.getenv(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL).upper(),
    )
