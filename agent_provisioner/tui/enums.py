from enum import Enum

from agent_provisioner.models import McpConflictCode, ProviderPriority


class UIStyle(str, Enum):
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    CYAN = "cyan"
    MAGENTA = "magenta"
    DIM = "dim"
    WHITE = "white"


PRIORITY_STYLE = {
    ProviderPriority.HIGH: UIStyle.GREEN.value,
    ProviderPriority.MEDIUM: UIStyle.CYAN.value,
    ProviderPriority.LOW: UIStyle.DIM.value,
}

CONFLICT_CODE_STYLE = {
    McpConflictCode.UNSUPPORTED_TRANSPORT: UIStyle.RED.value,
    McpConflictCode.UNSUPPORTED_HEADERS: UIStyle.MAGENTA.value,
    McpConflictCode.EXISTING_MISMATCH: UIStyle.YELLOW.value,
}
