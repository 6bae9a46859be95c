"""Errors raised while resolving and running a deployment."""


class DeployError(Exception):
    """Base class for fatal deployment errors."""

    exit_code = 1


class UsageError(DeployError):
    """Missing or malformed configuration."""


class DependencyError(DeployError):
    """A required local executable or resource file is absent."""


class OrchestrationFailure(DeployError):
    """Ansible (or its collection install) exited with a non-zero status."""

    def __init__(self, message: str, exit_code: int):
        super().__init__(message)
        self.exit_code = exit_code
