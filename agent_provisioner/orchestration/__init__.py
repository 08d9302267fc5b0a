from agent_provisioner.orchestration.batch import (
    BatchExecutor,
    install_batch_with_rollback,
)
from agent_provisioner.orchestration.configure import (
    configure_provider_global_and_project,
    update_instructions_single_operation,
)
from agent_provisioner.orchestration.conflicts import detect_mcp_config_conflicts
from agent_provisioner.orchestration.policy import apply_mcp_install_with_policy
from agent_provisioner.orchestration.selection import (
    select_providers_by_minimum_priority,
)

__all__ = [
    "BatchExecutor",
    "apply_mcp_install_with_policy",
    "configure_provider_global_and_project",
    "detect_mcp_config_conflicts",
    "install_batch_with_rollback",
    "select_providers_by_minimum_priority",
    "update_instructions_single_operation",
]
