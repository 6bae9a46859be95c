"""Deployment workflow steps."""
from pathlib import Path
from typing import Optional, Union

from hardclaw import prompts
from hardclaw.ansible import AnsibleOrchestrator, build_extra_vars
from hardclaw.config import DeployConfig, ResolvedConfig, apply_fallbacks, validate
from hardclaw.errors import DependencyError, OrchestrationFailure
from hardclaw.inventory import temporary_inventory
from hardclaw.utils import command_exists, log_info

REQUIRED_COMMANDS = ("openssl", "ssh-keygen", "ansible", "ansible-playbook")
WORDLIST = "eff_large_wordlist.txt"


def resolve_config(config: DeployConfig) -> ResolvedConfig:
    """Fill the record from prompts and fallbacks, then validate it."""
    if config.interactive:
        prompts.prompt_missing(config)
    apply_fallbacks(config)
    return validate(config)


def check_dependencies(workdir: Union[str, Path] = ".") -> None:
    """Fail before touching anything if a local tool or the wordlist is missing."""
    for command in REQUIRED_COMMANDS:
        if not command_exists(command):
            raise DependencyError(f"{command} is not installed locally. Please install it first.")

    if not (Path(workdir) / WORDLIST).is_file():
        raise DependencyError(f"{WORDLIST} not found. Please download it or run the setup command.")


def show_summary(config: ResolvedConfig) -> None:
    print("")
    print("🚀 Deploying Configuration:")
    print("----------------------------------------")
    print(f"Target:    {config.target_display}")
    print(f"User:      {config.ssh_user}")
    if config.ssh_key_path:
        print(f"SSH Key:   {config.ssh_key_path}")
    print("OS Check:  Auto-detect (Arch/Debian/Ubuntu)")
    print(f"Provider:  {config.provider.value}")
    print("----------------------------------------")


def run_deployment(
    config: ResolvedConfig,
    workdir: Union[str, Path] = ".",
    dry_run: bool = False,
    orchestrator: Optional[AnsibleOrchestrator] = None,
) -> None:
    """Check dependencies, write the inventory and hand off to Ansible."""
    # Phase 1: Local preflight
    check_dependencies(workdir)
    show_summary(config)

    if orchestrator is None:
        orchestrator = AnsibleOrchestrator.from_config(config, workdir=workdir, dry_run=dry_run)

    # Phase 2: Hand-off, the inventory only lives for the duration of the run
    with temporary_inventory(config) as inventory:
        log_info(f"Using temporary inventory {inventory}")
        status = orchestrator.apply(inventory, build_extra_vars(config))

    if status != 0:
        raise OrchestrationFailure(f"ansible-playbook exited with status {status}", status)
