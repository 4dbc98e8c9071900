import os
import json
import logging
from pathlib import Path

from colorlog import ColoredFormatter
from dotenv import load_dotenv

# --- CONSTANTS ---
APP_NAME = "ScriptCut"
VERSION = "1.0.0"
PROJECT_EXTENSION = ".scut"
ENV_PREFIX = "SCRIPTCUT_"

load_dotenv()

# --- PATHS ---
# Use %APPDATA% on Windows, ~/.config on Linux/Mac
if os.name == 'nt' and os.environ.get('APPDATA'):
    CONFIG_DIR = os.path.join(os.environ['APPDATA'], APP_NAME)
else:
    CONFIG_DIR = os.path.join(str(Path.home()), ".config", APP_NAME)

SETTINGS_FILE = os.path.join(CONFIG_DIR, "settings.json")

# --- LOGGING ---
def setup_logging(level=logging.INFO):
    """
    Installs the colored console handler on the application logger.
    Safe to call more than once; handlers are only added the first time.
    """
    logger = logging.getLogger(APP_NAME)
    logger.setLevel(level)

    if getattr(logger, "_scriptcut_configured", False):
        return logger

    formatter = ColoredFormatter(
        "%(log_color)s%(levelname)-8s%(reset)s %(blue)s%(name)s%(reset)s %(message)s",
        datefmt=None,
        reset=True,
        log_colors={'DEBUG': 'cyan', 'INFO': 'green', 'WARNING': 'yellow', 'ERROR': 'red'}
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    log_file = os.getenv(ENV_PREFIX + "LOG_FILE")
    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(file_handler)

    logger._scriptcut_configured = True
    return logger

logger = logging.getLogger(APP_NAME + ".Config")

# --- SETTINGS MANAGER ---
def load_settings():
    """Loads settings from JSON file."""
    if not os.path.exists(SETTINGS_FILE):
        return {}
    try:
        with open(SETTINGS_FILE, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to load settings: {e}")
        return {}

def save_settings(key, value):
    """Saves a single setting key-value pair."""
    os.makedirs(CONFIG_DIR, exist_ok=True)

    settings = load_settings()
    settings[key] = value

    try:
        with open(SETTINGS_FILE, 'w', encoding='utf-8') as f:
            json.dump(settings, f, indent=4)
        logger.info(f"Saved setting: {key} = {value}")
    except OSError as e:
        logger.error(f"Failed to save settings: {e}")

def get_setting(key, default=None):
    """Retrieves a setting value."""
    settings = load_settings()
    return settings.get(key, default)

def get_float_setting(key, default):
    """
    Resolves a numeric tunable.

    Lookup order: environment variable SCRIPTCUT_<KEY>, the settings file,
    then the supplied default. Unparseable values fall back to the default.
    """
    raw = os.getenv(ENV_PREFIX + key.upper())
    if raw is None:
        raw = get_setting(key)
    if raw is None:
        return float(default)
    try:
        return float(raw)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring invalid value for {key}: {raw!r}")
        return float(default)

# --- EDITING TUNABLES ---
# Used by LOAD when the duration oracle never reports a length
LOAD_FALLBACK_DURATION = get_float_setting("load_fallback_duration", 60.0)
DURATION_WAIT_TIMEOUT = get_float_setting("duration_wait_timeout", 3.0)
DURATION_POLL_INTERVAL = get_float_setting("duration_poll_interval", 0.1)

# CUT refuses to split closer than this to either segment edge
CUT_MARGIN = 0.1
MIN_SPEED_RATE = 0.1
MAX_SPEED_RATE = 10.0

TEXT_DEBOUNCE_MS = int(get_float_setting("text_debounce_ms", 500))
