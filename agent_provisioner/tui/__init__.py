from agent_provisioner.tui.renderers import ProvisionConsoleUI

__all__ = ["ProvisionConsoleUI"]
