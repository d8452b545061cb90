"""Environment configuration for the ClickUp bridge."""

import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Remote API
CLICKUP_API_URL = os.getenv('CLICKUP_API_URL', 'https://api.clickup.com/api/v2')

# Authentication configuration
CLICKUP_API_TOKEN = os.getenv('CLICKUP_API_TOKEN')

# Resolution defaults
CLICKUP_TEAM_ID = os.getenv('CLICKUP_TEAM_ID', '')
CLICKUP_DEFAULT_SPACE = os.getenv('CLICKUP_DEFAULT_SPACE', 'General')
CLICKUP_ALIASES_FILE = os.getenv('CLICKUP_ALIASES_FILE', '')
DEFAULT_TASK_NAME = "New task"

# Logging
LOG_DIR = os.getenv('LOG_DIR', '/tmp/clickup_mcp_logs')
LOG_RETENTION_DAYS = int(os.getenv('LOG_RETENTION_DAYS', '30'))

# HTTP configuration
HTTP_TIMEOUT = float(os.getenv('HTTP_TIMEOUT', '30.0'))  # seconds

# Response limits
CHARACTER_LIMIT = int(os.getenv('CHARACTER_LIMIT', '25000'))
