"""
Party Sync Client Configuration
===============================

1. Environment loading
2. Game server API
3. HTTP timeouts
4. Polling
5. Retry
6. Game rules
7. Auth placeholder
8. Logging
"""
import os
from dotenv import load_dotenv
import logging

# ============================================================================
# 1. Environment loading
# ============================================================================
load_dotenv()

# ============================================================================
# 2. Game server API
# ============================================================================
# Secrets and endpoints come from the environment; everything else is a constant.
GAME_API_BASE_URL = os.getenv("GAME_API_BASE_URL", "http://127.0.0.1:8000")
GAME_API_TOKEN = os.getenv("GAME_API_TOKEN")  # optional pre-issued JWT

# ============================================================================
# 3. HTTP timeouts
# ============================================================================
HTTP_TIMEOUT_TOTAL_SECONDS = float(os.getenv("GAME_API_TIMEOUT_TOTAL_SECONDS", "10.0"))
HTTP_TIMEOUT_CONNECT_SECONDS = float(os.getenv("GAME_API_TIMEOUT_CONNECT_SECONDS", "3.0"))

# Image generation is slow on the server side
IMAGE_HTTP_TIMEOUT_TOTAL_SECONDS = 60.0

# ============================================================================
# 4. Polling
# ============================================================================
SESSION_POLLING_INTERVAL_SECONDS = float(os.getenv("SESSION_POLLING_INTERVAL_SECONDS", "1.0"))
LOBBY_POLLING_INTERVAL_SECONDS = 3.0
CHALLENGE_POLLING_INTERVAL_SECONDS = 2.0
PHASE_WAIT_TIMEOUT_SECONDS = 300.0  # 5 minutes

# ============================================================================
# 5. Retry
# ============================================================================
IMAGE_MAX_RETRIES = 3
IMAGE_RETRY_DELAY_STEP_SECONDS = 2.0  # wait = step * attempt

# ============================================================================
# 6. Game rules
# ============================================================================
MAX_PLAYERS = 4
PLAYERS_PER_TEAM = 2
INITIAL_TEAM_SCORE = 100

# ============================================================================
# 7. Auth placeholder
# ============================================================================
# Accounts are keyed by username only; the password is a shared placeholder.
DEFAULT_PLAYER_PASSWORD = os.getenv("GAME_DEFAULT_PASSWORD", "piction2024")

# ============================================================================
# 8. Logging
# ============================================================================
LOG_LEVEL = logging.DEBUG if os.getenv("GAME_LOG_DEBUG") else logging.INFO
LOG_FILE = os.getenv("GAME_LOG_FILE")  # e.g. "logs/client.log"
