"""Constants used throughout snapvcs."""

# Directory names
SNAPVCS_DIR = ".snapvcs"
COMMITS_DIR = "commits"

# File names
MANIFEST_FILE = "manifest"
STATE_FILE = "state.json"
HISTORY_DB = "history.db"
IGNORE_FILE = ".snapvcsignore"

# State file format version
STATE_VERSION = 1

# Hash algorithm
HASH_ALGORITHM = "sha256"
HASH_LENGTH = 64  # SHA-256 produces 64 hex characters

# Environment variables
AUTHOR_ENV_VAR = "SNAPVCS_AUTHOR"

# Exit codes
EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1
EXIT_SYSTEM_ERROR = 2
EXIT_DATA_ERROR = 3

# Database schema version
DB_SCHEMA_VERSION = 1

DEFAULT_IGNORE_CONTENT = """# snapvcs ignore rules
#
# One glob pattern per line, lines starting with # are comments.
# A trailing / matches a directory and everything below it.

# Temporary files
*.tmp
*.swp
*~
.DS_Store
Thumbs.db

# Compiled Python
__pycache__/
*.pyc

# Virtual environments
venv/
.venv/

# IDE files
.vscode/
.idea/
"""
