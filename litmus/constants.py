"""litmus defaults."""

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

DEFAULT_SCENARIOS_DIR = "specs/scenarios"
DEFAULT_ARTIFACTS_DIR = ".litmus"
CONFIG_FILENAME = "litmus.toml"

DEFAULT_ACTION_TIMEOUT_MS = 10_000
DEFAULT_WAIT_MS = 1_000
DEFAULT_VIEWPORT = {"width": 1280, "height": 720}

DEFAULT_SERVER_PORT = 3000
SERVER_PROBE_TIMEOUT_S = 5.0
SERVER_READY_TIMEOUT_S = 90.0
SERVER_POLL_INTERVAL_S = 2.0

DEFAULT_AGENT_COMMAND = "claude"
DEFAULT_AGENT_TIMEOUT_S = 600
DEFAULT_ALLOWED_TOOLS = (
    "Read,Write,Edit,Bash(npm install:*),Bash(npx:*),Bash(node:*),"
    "Bash(npm run:*),Bash(cat:*),Bash(ls:*),Glob,Grep"
)

DEFAULT_MAX_ITERATIONS = 15
CONSOLE_EXCERPT_LIMIT = 5
PAGE_SNAPSHOT_MAX_CHARS = 8_000
