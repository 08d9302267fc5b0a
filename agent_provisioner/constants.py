from typing import Final


APP_NAME: Final[str] = "agent-provisioner"

AGENTS_HOME_ENV: Final[str] = "AGENTS_HOME"
AGENTS_DIRNAME: Final[str] = ".agents"
CANONICAL_SKILLS_DIRNAME: Final[str] = "skills"

REGISTRY_PATH_ENV: Final[str] = "AGENT_PROVISIONER_REGISTRY"
LOG_LEVEL_ENV: Final[str] = "AGENT_PROVISIONER_LOG_LEVEL"
LOG_FILE_ENV: Final[str] = "AGENT_PROVISIONER_LOG_FILE"

SKILL_BACKUP_PREFIX: Final[str] = "agent-provisioner-skill-backup"

INSTRUCTION_MARKER_START: Final[str] = "<!-- agent-provisioner:start -->"
INSTRUCTION_MARKER_END: Final[str] = "<!-- agent-provisioner:end -->"

SKILL_MANIFEST_FILENAME: Final[str] = "SKILL.md"
