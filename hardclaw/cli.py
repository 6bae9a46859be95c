"""CLI interface for the deployment tool."""
from pathlib import Path
from typing import Optional

import typer
from typer.core import TyperCommand

from . import steps
from . import utils
from .config import DeployConfig, Provider
from .errors import DeployError


class DeployCommand(TyperCommand):
    """Exit with status 1 on bad flags instead of click's default 2."""

    def parse_args(self, ctx, args):
        # typer may raise usage errors from its own bundled click, so match on the code
        try:
            return super().parse_args(ctx, args)
        except Exception as e:
            if getattr(e, "exit_code", None) == 2:
                e.exit_code = 1
            raise


def deploy(
    target: Optional[str] = typer.Option(None, "--target", "-t", help="Target IP address"),
    provider: Optional[Provider] = typer.Option(
        None, "--provider", "-p", case_sensitive=False, help="LLM Provider"
    ),
    model: Optional[str] = typer.Option(
        None, "--model", "-m", help="Model Name (e.g., llama3, claude-3-5-sonnet-20240620)"
    ),
    url: Optional[str] = typer.Option(
        None, "--url", "-u", help="API Base URL (e.g., http://10.0.110.1:11434)"
    ),
    key: Optional[str] = typer.Option(
        None, "--key", "-k", envvar="HARDCLAW_API_KEY", show_envvar=True, help="API Key"
    ),
    ssh_user: Optional[str] = typer.Option(
        None, "--ssh-user", help="Initial SSH User (Default: root, ubuntu for AWS Ubuntu)"
    ),
    ssh_key: Optional[str] = typer.Option(
        None, "--ssh-key", help="Path to private key for SSH connection"
    ),
    mgmt_cidr: Optional[str] = typer.Option(
        None, "--mgmt-cidr", help="Management Network CIDR (Restricts SSH to this network)"
    ),
    local: bool = typer.Option(False, "--local", help="Deploy to the local machine directly (bypasses SSH)"),
    ask_pass: bool = typer.Option(False, "--ask-pass", help="Ask for SSH and Sudo passwords"),
    non_interactive: bool = typer.Option(
        False, "--non-interactive", help="Never prompt, use defaults for anything not given"
    ),
    workdir: Path = typer.Option(
        Path("."), "--workdir", help="Directory holding playbook.yml, requirements.yml and the wordlist"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show the Ansible command without running it"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
):
    """Deploy a hardened OpenClaw host with Ansible."""
    utils.setup_logging(verbose)

    config = DeployConfig(
        target_address=target,
        deploy_local=local,
        ssh_user=ssh_user,
        ssh_key_path=ssh_key,
        ask_pass=ask_pass,
        mgmt_cidr=mgmt_cidr,
        provider=provider,
        model=model,
        api_url=url,
        api_key=key,
        interactive=not non_interactive,
    )

    try:
        resolved = steps.resolve_config(config)
        steps.run_deployment(resolved, workdir=workdir, dry_run=dry_run)
    except DeployError as e:
        utils.log_error(str(e))
        raise typer.Exit(e.exit_code)

    typer.echo("")
    typer.echo("✅ Deployment finished.")


app = typer.Typer(
    name="hardclaw",
    help="Deploy a hardened OpenClaw host with Ansible.",
    add_completion=False,
)
app.command(cls=DeployCommand, context_settings={"help_option_names": ["-h", "--help"]})(deploy)


def main():
    app()


if __name__ == "__main__":
    main()
