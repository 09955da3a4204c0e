"""Literal constants used by rsnap."""

APP_NAME = "rsnap"

MARKER_FILENAME = ".rsnap.json"

ENGINE_RSYNC = "rsync"
ENGINE_BORG = "borg"
SUPPORTED_ENGINES = (ENGINE_RSYNC, ENGINE_BORG)
DEFAULT_ENGINE = ENGINE_RSYNC

# Hard-link backend layout.
LATEST_ALIAS = "latest"
PARTIAL_PREFIX = ".partial-"

# Interactive prune token meaning "every archive".
SELECT_ALL_TOKEN = "all"

SECONDS_PER_DAY = 86400
