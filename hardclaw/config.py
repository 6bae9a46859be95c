"""Deployment configuration: provider table, fallbacks and validation."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from hardclaw.errors import UsageError
from hardclaw.utils import log_debug, log_warning

LOCAL_ADDRESSES = ("127.0.0.1", "localhost")
DEFAULT_SSH_USER = "root"
PLACEHOLDER_KEY = "sk-placeholder"


class Provider(str, Enum):
    """LLM providers the playbook knows how to configure."""

    OLLAMA = "ollama"
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    OPENAI_COMPATIBLE = "openai_compatible"
    OPENROUTER = "openrouter"
    ZAI = "z.ai"
    GEMINI = "gemini"


class UrlPolicy(str, Enum):
    """How the base URL of a provider is obtained."""

    NONE = "none"
    PROMPT = "prompt"
    INJECT = "inject"


@dataclass(frozen=True)
class ProviderProfile:
    label: str
    default_model: Optional[str] = None
    url_policy: UrlPolicy = UrlPolicy.NONE
    default_url: Optional[str] = None
    fixed_key: Optional[str] = None


DEFAULT_PROVIDER = Provider.OLLAMA

# Ordered as the interactive menu shows them.
PROFILES = {
    Provider.OLLAMA: ProviderProfile(
        "Ollama", "llama3", UrlPolicy.PROMPT, "http://10.0.110.1:11434", fixed_key="ollama"
    ),
    Provider.ANTHROPIC: ProviderProfile("Anthropic", "claude-3-5-sonnet-20240620"),
    Provider.OPENAI: ProviderProfile("OpenAI", "gpt-4o"),
    Provider.OPENAI_COMPATIBLE: ProviderProfile(
        "Azure / Other OpenAI Compatible", url_policy=UrlPolicy.PROMPT
    ),
    Provider.OPENROUTER: ProviderProfile(
        "OpenRouter", "qwen/qwen3-vl-235b-a22b-thinking", UrlPolicy.INJECT, "https://openrouter.ai/api/v1"
    ),
    Provider.ZAI: ProviderProfile(
        "Z.ai", "glm-4.7", UrlPolicy.INJECT, "https://api.z.ai/api/coding/paas/v4"
    ),
    Provider.GEMINI: ProviderProfile("Gemini", "google/gemini-3-flash-preview"),
}


@dataclass
class DeployConfig:
    """Configuration record filled in by flags, prompts and fallbacks."""

    target_address: Optional[str] = None
    deploy_local: bool = False
    ssh_user: Optional[str] = None
    ssh_key_path: Optional[str] = None
    ask_pass: bool = False
    mgmt_cidr: Optional[str] = None
    provider: Optional[Provider] = None
    model: Optional[str] = None
    api_url: Optional[str] = None
    api_key: Optional[str] = None
    interactive: bool = True

    @property
    def profile(self) -> Optional[ProviderProfile]:
        if self.provider is None:
            return None
        return PROFILES[self.provider]


@dataclass(frozen=True)
class ResolvedConfig:
    """Validated, read-only configuration handed to the inventory and Ansible."""

    target_address: Optional[str]
    deploy_local: bool
    ssh_user: str
    ssh_key_path: Optional[str]
    ask_pass: bool
    mgmt_cidr: Optional[str]
    provider: Provider
    model: str
    api_url: str
    api_key: str

    @property
    def target_display(self) -> str:
        if self.deploy_local:
            return "Local Machine (localhost)"
        return self.target_address


def apply_fallbacks(config: DeployConfig) -> None:
    """Fill anything still unset with static defaults so non-interactive runs never block."""
    if not config.ssh_user:
        config.ssh_user = DEFAULT_SSH_USER
    if config.provider is None:
        config.provider = DEFAULT_PROVIDER

    profile = config.profile
    if config.provider is DEFAULT_PROVIDER:
        if not config.model:
            config.model = profile.default_model
        if not config.api_url:
            config.api_url = profile.default_url

    if not config.api_key:
        if profile.fixed_key:
            config.api_key = profile.fixed_key
        else:
            log_warning(
                f"No API key supplied for {config.provider.value}; "
                f"deploying with placeholder '{PLACEHOLDER_KEY}'."
            )
            config.api_key = PLACEHOLDER_KEY


def normalize_target(config: DeployConfig) -> None:
    """Collapse --local, 127.0.0.1 and localhost into one local form."""
    if config.target_address:
        config.target_address = config.target_address.strip() or None
    if config.target_address in LOCAL_ADDRESSES:
        config.deploy_local = True
    if config.deploy_local:
        if config.target_address:
            log_debug(f"Local deployment, ignoring target {config.target_address}")
        config.target_address = None


def _single_token(name: str, value: str) -> None:
    if len(value.split()) != 1:
        raise UsageError(f"{name} must not contain whitespace: {value!r}")


def validate(config: DeployConfig) -> ResolvedConfig:
    """Check required fields and freeze the record."""
    normalize_target(config)
    ssh_user = config.ssh_user or DEFAULT_SSH_USER

    if not config.deploy_local:
        if not config.target_address:
            raise UsageError("Target IP is required unless --local is used.")
        _single_token("Target", config.target_address)
        _single_token("SSH user", ssh_user)

    if config.provider is None or not config.api_key:
        raise UsageError("Provider and API key must be resolved before deployment.")

    # Ansible's key=value parser reads a closing quote after a backslash as escaped
    for name, value in (
        ("Model", config.model),
        ("URL", config.api_url),
        ("API key", config.api_key),
        ("Management CIDR", config.mgmt_cidr),
    ):
        if value and value.endswith("\\"):
            raise UsageError(f"{name} must not end with a backslash.")

    return ResolvedConfig(
        target_address=config.target_address,
        deploy_local=config.deploy_local,
        ssh_user=ssh_user,
        ssh_key_path=config.ssh_key_path or None,
        ask_pass=config.ask_pass,
        mgmt_cidr=config.mgmt_cidr or None,
        provider=config.provider,
        model=config.model or "",
        api_url=config.api_url or "",
        api_key=config.api_key,
    )
