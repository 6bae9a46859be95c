"""Temporary Ansible inventory for the single target host."""
import os
import signal
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from hardclaw.config import ResolvedConfig
from hardclaw.utils import log_debug

INVENTORY_GROUP = "openclaw_hosts"
LOCAL_HOST_LINE = "localhost ansible_connection=local"
CLEANUP_SIGNALS = (signal.SIGTERM, signal.SIGHUP)


def render_inventory(config: ResolvedConfig) -> str:
    """Render a one-group, one-host INI inventory."""
    if config.deploy_local:
        host_line = LOCAL_HOST_LINE
    else:
        host_line = f"{config.target_address} ansible_user={config.ssh_user}"
    return f"[{INVENTORY_GROUP}]\n{host_line}\n"


def _exit_on_signal(signum, frame):
    raise SystemExit(128 + signum)


@contextmanager
def _signals_raise_exit() -> Iterator[None]:
    """Turn termination signals into SystemExit so pending finally blocks run."""
    previous = {signum: signal.signal(signum, _exit_on_signal) for signum in CLEANUP_SIGNALS}
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


@contextmanager
def temporary_inventory(config: ResolvedConfig) -> Iterator[Path]:
    """Write the inventory to a temp file and remove it when the block exits."""
    fd, name = tempfile.mkstemp(prefix="hardclaw-inventory-", suffix=".ini")
    path = Path(name)
    try:
        with os.fdopen(fd, "w") as f:
            f.write(render_inventory(config))
        log_debug(f"Wrote inventory to {path}")
        with _signals_raise_exit():
            yield path
    finally:
        path.unlink(missing_ok=True)
        log_debug(f"Removed inventory {path}")
