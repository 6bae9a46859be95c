"""Interactive prompts for settings not given on the command line."""
import typer

from hardclaw.config import DEFAULT_PROVIDER, PROFILES, DeployConfig, Provider, UrlPolicy
from hardclaw.utils import log_info

PROVIDER_MENU = {str(number): provider for number, provider in enumerate(PROFILES, start=1)}
ENV_FILE_HINT = "/home/openclaw/openclaw-docker/.env"


def _ask(text: str, default: str = "", hide_input: bool = False) -> str:
    value = typer.prompt(text, default=default, show_default=bool(default), hide_input=hide_input)
    return value.strip()


def prompt_target(config: DeployConfig) -> None:
    if config.target_address or config.deploy_local:
        return
    config.target_address = _ask("Enter Target Host IP") or None


def prompt_ssh_user(config: DeployConfig) -> None:
    if config.ssh_user:
        return
    typer.echo("Enter Initial SSH User (e.g., 'root' for bare metal, 'ubuntu' for AWS, 'ec2-user'):")
    config.ssh_user = _ask("User", default="root")


def prompt_ssh_key(config: DeployConfig) -> None:
    # --ask-pass and key-based auth are mutually exclusive
    if config.ssh_key_path or config.ask_pass:
        return
    typer.echo("")
    typer.echo("Enter path to SSH Private Key (leave empty to use default/ssh-agent):")
    config.ssh_key_path = _ask("Key Path") or None


def prompt_provider(config: DeployConfig) -> None:
    if config.provider is not None:
        return
    typer.echo("")
    typer.echo("Select LLM Provider:")
    for number, provider in PROVIDER_MENU.items():
        label = PROFILES[provider].label
        if provider is DEFAULT_PROVIDER:
            label += " (Default)"
        typer.echo(f"  {number}) {label}")
    choice = _ask(f"Choice [1-{len(PROVIDER_MENU)}]")
    config.provider = PROVIDER_MENU.get(choice, DEFAULT_PROVIDER)


def prompt_model(config: DeployConfig) -> None:
    if config.model:
        return
    typer.echo("")
    config.model = _ask("Enter Model Name", default=config.profile.default_model or "")


def prompt_url(config: DeployConfig) -> None:
    if config.api_url:
        return
    profile = config.profile
    if profile.url_policy is UrlPolicy.PROMPT:
        typer.echo("")
        label = profile.label if config.provider is Provider.OLLAMA else "API"
        config.api_url = _ask(f"Enter {label} Base URL", default=profile.default_url or "") or None
    elif profile.url_policy is UrlPolicy.INJECT:
        config.api_url = profile.default_url
    typer.echo(f"TIP: You can add more keys for other providers later in {ENV_FILE_HINT}")


def prompt_api_key(config: DeployConfig) -> None:
    if config.api_key:
        return
    fixed_key = config.profile.fixed_key
    if fixed_key:
        config.api_key = fixed_key
        return
    typer.echo("")
    config.api_key = _ask("Enter API Key", hide_input=True) or None


PROMPT_ORDER = (
    prompt_target,
    prompt_ssh_user,
    prompt_ssh_key,
    prompt_provider,
    prompt_model,
    prompt_url,
    prompt_api_key,
)


def prompt_missing(config: DeployConfig) -> None:
    """Ask the operator for every setting that is still unset.

    Fields already supplied by flags are never asked again. If stdin closes
    early the remaining fields are left unset for the fallback pass; an
    interrupt still aborts the run.
    """
    typer.echo("==================================================")
    typer.echo("   🛡️  Hardclaw Deployment Setup")
    typer.echo("==================================================")
    typer.echo("")

    for prompt in PROMPT_ORDER:
        try:
            prompt(config)
        except typer.Abort as exc:
            if not isinstance(exc.__context__, EOFError):
                raise
            typer.echo("")
            log_info("Input closed, using defaults for remaining settings.")
            return
