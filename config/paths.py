"""
Application Paths - Centralized path definitions cho llmctx

Module nay dinh nghia tat ca cac duong dan su dung trong ung dung.
Tap trung o mot noi de tranh hardcode rai rac.

App data duoc luu tai: ~/.llmctx/
- logs/         : Log files
- settings.json : Model, token budget, heuristic parameters
"""

import os
from pathlib import Path


# =============================================================================
# Ten ung dung - Single source of truth cho naming
# =============================================================================
APP_NAME = "llmctx"

# =============================================================================
# Thu muc goc cua ung dung
# =============================================================================
APP_DIR = Path.home() / f".{APP_NAME}"

LOG_DIR = APP_DIR / "logs"
SETTINGS_FILE = APP_DIR / "settings.json"

# =============================================================================
# Environment Variables
# =============================================================================
DEBUG_ENV_VAR = "LLMCTX_DEBUG"

DEBUG_MODE = os.environ.get(DEBUG_ENV_VAR, "").lower() in ("1", "true", "yes")

