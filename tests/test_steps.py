"""Tests for the main deployment workflow steps."""
import pytest
from unittest.mock import patch, MagicMock
from pathlib import Path

from hardclaw.config import DeployConfig, Provider
from hardclaw.errors import DependencyError, OrchestrationFailure, UsageError
from hardclaw.steps import check_dependencies, resolve_config, run_deployment


class FakeOrchestrator:
    """Records what would have been handed to Ansible."""

    def __init__(self, status=0, error=None):
        self.status = status
        self.error = error
        self.inventory = None
        self.inventory_text = None
        self.variables = None

    def apply(self, inventory, variables):
        self.inventory = Path(inventory)
        self.inventory_text = self.inventory.read_text()
        self.variables = variables
        if self.error:
            raise self.error
        return self.status


class TestResolveConfig:
    """Tests for the resolution pipeline."""

    @patch('hardclaw.steps.prompts.prompt_missing')
    def test_non_interactive_never_prompts(self, mock_prompt):
        """Test --non-interactive falls back to ollama defaults without prompting."""
        resolved = resolve_config(DeployConfig(target_address="10.0.0.5", interactive=False))

        mock_prompt.assert_not_called()
        assert resolved.provider is Provider.OLLAMA
        assert resolved.model == "llama3"
        assert resolved.api_url == "http://10.0.110.1:11434"
        assert resolved.api_key == "ollama"
        assert resolved.ssh_user == "root"

    @patch('hardclaw.steps.prompts.prompt_missing')
    def test_interactive_prompts_before_fallbacks(self, mock_prompt):
        def answer(config):
            config.target_address = "10.0.0.9"
            config.provider = Provider.GEMINI
            config.api_key = "g-key"

        mock_prompt.side_effect = answer

        resolved = resolve_config(DeployConfig())

        mock_prompt.assert_called_once()
        assert resolved.target_address == "10.0.0.9"
        assert resolved.provider is Provider.GEMINI
        assert resolved.api_key == "g-key"

    def test_missing_target_is_usage_error(self):
        with pytest.raises(UsageError):
            resolve_config(DeployConfig(interactive=False))

    @pytest.mark.parametrize("address", ["127.0.0.1", "localhost"])
    def test_loopback_target_is_local(self, address):
        resolved = resolve_config(DeployConfig(target_address=address, interactive=False))

        assert resolved.deploy_local is True


class TestCheckDependencies:
    """Tests for local dependency checks."""

    @patch('hardclaw.steps.command_exists', return_value=True)
    def test_all_present(self, mock_exists, tmp_path):
        (tmp_path / "eff_large_wordlist.txt").write_text("11111\tabacus\n")

        check_dependencies(tmp_path)

        checked = [c.args[0] for c in mock_exists.call_args_list]
        assert checked == ["openssl", "ssh-keygen", "ansible", "ansible-playbook"]

    @patch('hardclaw.steps.command_exists')
    def test_first_missing_command_named(self, mock_exists, tmp_path):
        mock_exists.side_effect = lambda command: command != "ssh-keygen"

        with pytest.raises(DependencyError, match="ssh-keygen is not installed"):
            check_dependencies(tmp_path)

        assert mock_exists.call_count == 2

    @patch('hardclaw.steps.command_exists', return_value=True)
    def test_missing_wordlist(self, mock_exists, tmp_path):
        with pytest.raises(DependencyError, match="eff_large_wordlist.txt not found"):
            check_dependencies(tmp_path)


class TestRunDeployment:
    """Tests for the hand-off to the orchestrator."""

    def _resolved(self, **kwargs):
        kwargs.setdefault("interactive", False)
        return resolve_config(DeployConfig(**kwargs))

    @patch('hardclaw.steps.check_dependencies')
    def test_remote_round_trip(self, mock_check):
        """Test flags flow through to the inventory and the variable bundle."""
        config = self._resolved(
            target_address="10.0.0.5", ssh_user="ubuntu", provider=Provider.ANTHROPIC,
            model="claude-3-5-sonnet-20240620", api_key="sk-test",
        )
        orchestrator = FakeOrchestrator()

        run_deployment(config, orchestrator=orchestrator)

        assert orchestrator.inventory_text == "[openclaw_hosts]\n10.0.0.5 ansible_user=ubuntu\n"
        assert "llm_provider='anthropic'" in orchestrator.variables
        assert "llm_model='claude-3-5-sonnet-20240620'" in orchestrator.variables
        assert "llm_key='sk-test'" in orchestrator.variables
        assert not orchestrator.inventory.exists()

    @patch('hardclaw.steps.check_dependencies')
    def test_local_flag_wins_over_target(self, mock_check):
        config = self._resolved(target_address="10.0.0.5", deploy_local=True)
        orchestrator = FakeOrchestrator()

        run_deployment(config, orchestrator=orchestrator)

        assert orchestrator.inventory_text == "[openclaw_hosts]\nlocalhost ansible_connection=local\n"

    @patch('hardclaw.steps.check_dependencies')
    def test_failed_playbook_still_cleans_up(self, mock_check):
        """Test a non-zero exit raises with the same status and removes the inventory."""
        orchestrator = FakeOrchestrator(status=3)

        with pytest.raises(OrchestrationFailure) as excinfo:
            run_deployment(self._resolved(target_address="10.0.0.5"), orchestrator=orchestrator)

        assert excinfo.value.exit_code == 3
        assert not orchestrator.inventory.exists()

    @patch('hardclaw.steps.check_dependencies')
    def test_collection_failure_still_cleans_up(self, mock_check):
        orchestrator = FakeOrchestrator(error=OrchestrationFailure("ansible-galaxy exited with status 1", 1))

        with pytest.raises(OrchestrationFailure):
            run_deployment(self._resolved(target_address="10.0.0.5"), orchestrator=orchestrator)

        assert not orchestrator.inventory.exists()

    @patch('hardclaw.steps.temporary_inventory')
    @patch('hardclaw.steps.check_dependencies')
    def test_dependency_failure_writes_no_inventory(self, mock_check, mock_inventory):
        mock_check.side_effect = DependencyError("ansible is not installed locally. Please install it first.")

        with pytest.raises(DependencyError):
            run_deployment(self._resolved(target_address="10.0.0.5"), orchestrator=FakeOrchestrator())

        mock_inventory.assert_not_called()

    @patch('hardclaw.steps.AnsibleOrchestrator')
    @patch('hardclaw.steps.check_dependencies')
    def test_default_orchestrator_built_from_config(self, mock_check, mock_orchestrator_cls):
        mock_orchestrator_cls.from_config.return_value.apply.return_value = 0
        config = self._resolved(target_address="10.0.0.5", ask_pass=True)

        run_deployment(config, workdir="/srv/hardclaw", dry_run=True)

        mock_check.assert_called_once_with("/srv/hardclaw")
        mock_orchestrator_cls.from_config.assert_called_once_with(config, workdir="/srv/hardclaw", dry_run=True)
        mock_orchestrator_cls.from_config.return_value.apply.assert_called_once()

    @patch('hardclaw.steps.check_dependencies')
    def test_summary_printed(self, mock_check, capsys):
        config = self._resolved(target_address="10.0.0.5", ssh_key_path="/k")

        run_deployment(config, orchestrator=FakeOrchestrator())

        out = capsys.readouterr().out
        assert "Target:    10.0.0.5" in out
        assert "SSH Key:   /k" in out
        assert "Provider:  ollama" in out
