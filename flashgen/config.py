"""Generation settings loading and validation."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .errors import ConfigError
from .llm.gateway import DEFAULT_BASE_URL, DEFAULT_MAX_RETRIES, DEFAULT_MODEL, DEFAULT_TIMEOUT_S
from .llm.messages import ModelParameters

PROVIDERS = ("mock", "openrouter")
DEFAULT_API_KEY_ENV = "OPENROUTER_API_KEY"


@dataclass
class GenerationSettings:
    """Complete configuration of the generation pipeline.

    Built once at startup; nothing downstream reads the environment again.
    """

    provider: str = "mock"
    api_key: str = field(default="", repr=False)
    api_key_env: str = DEFAULT_API_KEY_ENV
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    timeout_s: float = DEFAULT_TIMEOUT_S
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay_s: float = 1.0
    parameters: ModelParameters = field(default_factory=ModelParameters)
    mock_failure_rate: float = 0.05
    store_dir: str = ".flashgen"

    def validate(self) -> None:
        """Reject out-of-range values.

        Raises:
            ConfigError: Listing every problem found
        """
        errors = []
        if self.provider not in PROVIDERS:
            errors.append(
                f"Unknown provider '{self.provider}'. Available providers: {', '.join(PROVIDERS)}"
            )
        if not self.model:
            errors.append("model must not be empty")
        if self.timeout_s <= 0 or self.timeout_s > 3600:
            errors.append(
                f"Invalid timeout_s: {self.timeout_s}. Must be greater than 0 and at most 3600 seconds."
            )
        if self.max_retries < 1:
            errors.append(f"max_retries must be at least 1, got {self.max_retries}")
        if self.base_delay_s < 0:
            errors.append(f"base_delay_s must not be negative, got {self.base_delay_s}")
        if not 0 <= self.mock_failure_rate <= 1:
            errors.append(
                f"mock failure_rate must be between 0 and 1, got {self.mock_failure_rate}"
            )
        errors.extend(self.parameters.range_errors())

        if errors:
            raise ConfigError("; ".join(errors))

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def describe(self) -> dict[str, Any]:
        """Effective settings with the API key masked."""
        if self.has_credential:
            masked_key = f"{self.api_key[:8]}... (length: {len(self.api_key)})"
        else:
            masked_key = "Not set"

        return {
            "provider": self.provider,
            "api_key": masked_key,
            "api_key_env": self.api_key_env,
            "base_url": self.base_url,
            "model": self.model,
            "timeout_s": self.timeout_s,
            "max_retries": self.max_retries,
            "base_delay_s": self.base_delay_s,
            "parameters": self.parameters.to_payload(),
            "mock_failure_rate": self.mock_failure_rate,
            "store_dir": self.store_dir,
        }


def load_settings(
    path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> GenerationSettings:
    """Load settings from an optional YAML file plus environment overrides.

    Args:
        path: YAML file with a ``generation`` section
        env: Environment mapping; defaults to ``os.environ`` after loading ``.env``

    Returns:
        Validated settings

    Raises:
        FileNotFoundError: If ``path`` does not exist
        ConfigError: If the file or environment holds invalid values
        yaml.YAMLError: If the YAML is malformed
    """
    if env is None:
        load_dotenv()
        env = os.environ

    data: dict[str, Any] = {}
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path) as f:
            content = yaml.safe_load(f)

        if not isinstance(content, dict) or "generation" not in content:
            raise ConfigError("Configuration file missing 'generation' section")
        data = content["generation"] or {}
        if not isinstance(data, dict):
            raise ConfigError("'generation' section must be a mapping")

    settings = _from_mapping(data)
    _apply_env(settings, env)
    settings.validate()
    return settings


def _from_mapping(data: dict[str, Any]) -> GenerationSettings:
    settings = GenerationSettings()

    for key in ("provider", "api_key_env", "base_url", "model", "store_dir"):
        if key in data:
            setattr(settings, key, str(data[key]))

    if "timeout_s" in data:
        settings.timeout_s = _number(data["timeout_s"], "timeout_s", float)
    if "max_retries" in data:
        settings.max_retries = _number(data["max_retries"], "max_retries", int)
    if "base_delay_s" in data:
        settings.base_delay_s = _number(data["base_delay_s"], "base_delay_s", float)

    params = data.get("parameters") or {}
    if not isinstance(params, dict):
        raise ConfigError("'parameters' must be a mapping")
    try:
        settings.parameters = settings.parameters.merged(
            {k: _number(v, k, float) for k, v in params.items()}
        )
    except ValueError as e:
        raise ConfigError(str(e)) from e

    mock = data.get("mock") or {}
    if "failure_rate" in mock:
        settings.mock_failure_rate = _number(mock["failure_rate"], "mock.failure_rate", float)

    return settings


def _apply_env(settings: GenerationSettings, env: Mapping[str, str]) -> None:
    if env.get("AI_SERVICE_PROVIDER"):
        settings.provider = env["AI_SERVICE_PROVIDER"].strip().lower()
    if env.get("OPENROUTER_BASE_URL"):
        settings.base_url = env["OPENROUTER_BASE_URL"]
    if env.get("OPENROUTER_MODEL"):
        settings.model = env["OPENROUTER_MODEL"]
    if env.get("FLASHGEN_STORE_DIR"):
        settings.store_dir = env["FLASHGEN_STORE_DIR"]

    settings.api_key = env.get(settings.api_key_env, "") or ""

    # Durations arrive in milliseconds
    if env.get("AI_SERVICE_TIMEOUT"):
        settings.timeout_s = _number(env["AI_SERVICE_TIMEOUT"], "AI_SERVICE_TIMEOUT", float) / 1000
    if env.get("OPENROUTER_RETRY_DELAY"):
        settings.base_delay_s = _number(env["OPENROUTER_RETRY_DELAY"], "OPENROUTER_RETRY_DELAY", float) / 1000
    if env.get("OPENROUTER_MAX_RETRIES"):
        settings.max_retries = _number(env["OPENROUTER_MAX_RETRIES"], "OPENROUTER_MAX_RETRIES", int)

    overrides = {}
    if env.get("OPENROUTER_TEMPERATURE"):
        overrides["temperature"] = _number(env["OPENROUTER_TEMPERATURE"], "OPENROUTER_TEMPERATURE", float)
    if env.get("OPENROUTER_TOP_P"):
        overrides["top_p"] = _number(env["OPENROUTER_TOP_P"], "OPENROUTER_TOP_P", float)
    settings.parameters = settings.parameters.merged(overrides)


def _number(value: Any, name: str, kind: type) -> Any:
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be a number, got {value!r}") from e
