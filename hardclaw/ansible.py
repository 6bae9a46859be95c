"""Ansible invocation: extra-vars bundle, galaxy collections and the playbook run."""
import re
import shlex
from pathlib import Path
from typing import List, Optional, Union

import sh

from hardclaw.config import ResolvedConfig
from hardclaw.errors import OrchestrationFailure
from hardclaw.utils import log_action, log_debug, log_error

PLAYBOOK = "playbook.yml"
REQUIREMENTS = "requirements.yml"
SECRET_VARS = ("llm_key",)


def quote_value(value: str) -> str:
    """Single-quote a value using the escapes Ansible's key=value parser decodes."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def extra_vars(config: ResolvedConfig) -> dict:
    return {
        "llm_provider": config.provider.value,
        "llm_model": config.model,
        "llm_url": config.api_url,
        "llm_key": config.api_key,
        "openclaw_mgmt_cidr": config.mgmt_cidr or "",
    }


def build_extra_vars(config: ResolvedConfig) -> str:
    """Build the space separated key='value' string passed to --extra-vars."""
    return " ".join(f"{name}={quote_value(value)}" for name, value in extra_vars(config).items())


def mask_secrets(variables: str) -> str:
    """Hide secret values before a command line is logged."""
    for name in SECRET_VARS:
        variables = re.sub(rf"\b{name}='(?:\\.|[^'\\])*'", f"{name}='***'", variables)
    return variables


def build_playbook_args(
    inventory: Union[str, Path],
    variables: str,
    playbook: Union[str, Path] = PLAYBOOK,
    ask_pass: bool = False,
    private_key: Optional[str] = None,
) -> List[str]:
    """Assemble the ansible-playbook argument list."""
    args = ["-i", str(inventory), str(playbook)]
    if ask_pass:
        args.extend(["-k", "-K"])
    if private_key:
        args.append(f"--private-key={private_key}")
    args.extend(["--extra-vars", variables])
    return args


def install_collections(requirements: Union[str, Path]) -> None:
    """Install the collections the playbook declares; output is only shown on failure."""
    log_action("📦 Installing Ansible collections...")
    try:
        sh.Command("ansible-galaxy")("collection", "install", "-r", str(requirements))
    except sh.ErrorReturnCode as e:
        status = _status_from(e.exit_code)
        stderr = e.stderr.decode(errors="replace").strip()
        if stderr:
            log_error(stderr)
        raise OrchestrationFailure(
            f"ansible-galaxy exited with status {status}", status
        ) from e


def _status_from(exit_code: int) -> int:
    # sh reports death by signal as a negative exit code
    if exit_code < 0:
        return 128 - exit_code
    return exit_code


def run_playbook(args: List[str]) -> int:
    """Run ansible-playbook in the foreground so its prompts reach the terminal."""
    try:
        sh.Command("ansible-playbook")(*args, _fg=True)
    except sh.ErrorReturnCode as e:
        return _status_from(e.exit_code)
    return 0


class AnsibleOrchestrator:
    """Hands the inventory and variables off to ansible-playbook."""

    def __init__(
        self,
        workdir: Union[str, Path] = ".",
        ask_pass: bool = False,
        private_key: Optional[str] = None,
        dry_run: bool = False,
    ):
        self.workdir = Path(workdir)
        self.ask_pass = ask_pass
        self.private_key = private_key
        self.dry_run = dry_run

    @classmethod
    def from_config(cls, config: ResolvedConfig, workdir: Union[str, Path] = ".", dry_run: bool = False):
        return cls(workdir, ask_pass=config.ask_pass, private_key=config.ssh_key_path, dry_run=dry_run)

    def playbook_args(self, inventory: Union[str, Path], variables: str) -> List[str]:
        return build_playbook_args(
            inventory,
            variables,
            playbook=self.workdir / PLAYBOOK,
            ask_pass=self.ask_pass,
            private_key=self.private_key,
        )

    def apply(self, inventory: Union[str, Path], variables: str) -> int:
        """Install collections, then run the playbook. Returns its exit status."""
        args = self.playbook_args(inventory, variables)
        shown = shlex.join(["ansible-playbook"] + self.playbook_args(inventory, mask_secrets(variables)))
        log_debug(shown)

        if self.dry_run:
            log_action(f"[DRY RUN] Would install collections from {self.workdir / REQUIREMENTS}")
            log_action(f"[DRY RUN] Would run: {shown}")
            return 0

        install_collections(self.workdir / REQUIREMENTS)
        log_action("Running ansible-playbook...")
        return run_playbook(args)
