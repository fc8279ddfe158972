"""Load settings.yaml into typed dataclasses. Validates values at startup."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from alliance.errors import ConfigurationError
from alliance.models import CollaborationMode

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"

DEFAULT_SYSTEM_PROMPT = (
    "You are an expert AI assistant participating in a collaborative decision-making process. "
    "Provide thoughtful, well-reasoned responses with clear reasoning. "
    "Be precise and analytical in your approach."
)

DEFAULT_DEBATE_TEMPLATE = """Original Question: {question}
{context_block}
Current Perspectives (debate round {round}):
{perspectives}

Please review all perspectives above and provide:
1. Your refined response considering other viewpoints
2. Points where you agree with others
3. Points where you disagree and why
4. A confidence score (0-1) for your position

Be objective and focus on finding the best solution."""


@dataclass
class ModelConfig:
    name: str
    sdk: str
    model: str
    api_key_env: str
    timeout_sec: int
    max_tokens: int
    temperature: float = 0.7
    base_url: str | None = None
    input_cost_per_1k: float | None = None
    output_cost_per_1k: float | None = None


@dataclass
class PromptsConfig:
    system: str = DEFAULT_SYSTEM_PROMPT
    debate: str = DEFAULT_DEBATE_TEMPLATE


@dataclass
class DefaultsConfig:
    voting_threshold: float = 0.7
    max_debate_rounds: int = 3
    timeout_ms: int = 30000
    collaboration_mode: str = CollaborationMode.DEMOCRATIC_CONSENSUS.value
    output_dir: Path = Path("./output")
    default_panel: list[str] = field(default_factory=list)


@dataclass
class InboxConfig:
    dir: Path = Path("./inbox")
    archive_dir: Path = Path("./inbox/archive")


@dataclass
class AppConfig:
    defaults: DefaultsConfig
    models: dict[str, ModelConfig]
    prompts: PromptsConfig = field(default_factory=PromptsConfig)
    inbox: InboxConfig = field(default_factory=InboxConfig)
    available_providers: set[str] = field(default_factory=set)


def _optional_float(value: object) -> float | None:
    return None if value is None else float(value)


def _validate_defaults(defaults: DefaultsConfig) -> None:
    if not 0.0 <= defaults.voting_threshold <= 1.0:
        raise ConfigurationError(f"voting_threshold must be within [0, 1], got {defaults.voting_threshold}")
    if defaults.max_debate_rounds < 0:
        raise ConfigurationError(f"max_debate_rounds must be >= 0, got {defaults.max_debate_rounds}")
    if defaults.timeout_ms < 0:
        raise ConfigurationError(f"timeout_ms must be >= 0, got {defaults.timeout_ms}")
    valid_modes = {m.value for m in CollaborationMode}
    if defaults.collaboration_mode not in valid_modes:
        raise ConfigurationError(
            f"Unknown collaboration_mode '{defaults.collaboration_mode}', "
            f"expected one of: {', '.join(sorted(valid_modes))}"
        )


def _validate_debate_template(template: object) -> None:
    if not isinstance(template, str):
        raise ConfigurationError(f"prompts.debate must be a string, got {type(template).__name__}")
    try:
        template.format(question="", context_block="", perspectives="", round=1)
    except (AttributeError, KeyError, IndexError, ValueError) as exc:
        raise ConfigurationError(
            f"prompts.debate is not a valid template ({exc!r}); "
            "allowed placeholders are {question}, {context_block}, {perspectives}, {round}, "
            "literal braces must be doubled"
        ) from exc


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing and ConfigurationError
    on out-of-range values. Logs missing API keys but does not raise; callers
    check available_providers.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    defaults_raw = raw.get("defaults", {})
    defaults = DefaultsConfig(
        voting_threshold=float(defaults_raw.get("voting_threshold", 0.7)),
        max_debate_rounds=int(defaults_raw.get("max_debate_rounds", 3)),
        timeout_ms=int(defaults_raw.get("timeout_ms", 30000)),
        collaboration_mode=str(
            defaults_raw.get("collaboration_mode", CollaborationMode.DEMOCRATIC_CONSENSUS.value)
        ),
        output_dir=Path(defaults_raw.get("output_dir", "./output")),
        default_panel=list(defaults_raw.get("default_panel", [])),
    )
    _validate_defaults(defaults)

    prompts_raw = raw.get("prompts", {})
    prompts = PromptsConfig(
        system=prompts_raw.get("system", DEFAULT_SYSTEM_PROMPT),
        debate=prompts_raw.get("debate", DEFAULT_DEBATE_TEMPLATE),
    )
    _validate_debate_template(prompts.debate)

    inbox_raw = raw.get("inbox", {})
    inbox = InboxConfig(
        dir=Path(inbox_raw.get("dir", "./inbox")),
        archive_dir=Path(inbox_raw.get("archive_dir", "./inbox/archive")),
    )

    models: dict[str, ModelConfig] = {}
    available_providers: set[str] = set()

    for provider_name, model_raw in raw.get("models", {}).items():
        model_cfg = ModelConfig(
            name=provider_name,
            sdk=model_raw["sdk"],
            model=model_raw["model"],
            api_key_env=model_raw["api_key_env"],
            timeout_sec=int(model_raw["timeout_sec"]),
            max_tokens=int(model_raw["max_tokens"]),
            temperature=float(model_raw.get("temperature", 0.7)),
            base_url=model_raw.get("base_url"),
            input_cost_per_1k=_optional_float(model_raw.get("input_cost_per_1k")),
            output_cost_per_1k=_optional_float(model_raw.get("output_cost_per_1k")),
        )
        models[provider_name] = model_cfg

        api_key = os.environ.get(model_raw["api_key_env"], "").strip()
        if api_key:
            available_providers.add(provider_name)
            logger.info("Provider available: %s", provider_name)
        else:
            logger.info(
                "Provider skipped (no API key): %s, set %s in .env",
                provider_name,
                model_raw["api_key_env"],
            )

    return AppConfig(
        defaults=defaults,
        models=models,
        prompts=prompts,
        inbox=inbox,
        available_providers=available_providers,
    )
