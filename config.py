"""Configuration module for the Guidebot relay."""

import os
import re
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Logging Setup ---
LOG_DIR = os.environ.get("GUIDEBOT_LOG_PATH", "logs")
os.makedirs(LOG_DIR, exist_ok=True)

# Log rotation settings
LOG_MAX_BYTES = 10 * 1024 * 1024  # 10 MB per file
LOG_BACKUP_COUNT = 5

# Set up logging with UTC timestamps
formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
formatter.converter = lambda *args: datetime.now(timezone.utc).timetuple()

file_handler = RotatingFileHandler(
    os.path.join(LOG_DIR, "guidebot.log"),
    maxBytes=LOG_MAX_BYTES,
    backupCount=LOG_BACKUP_COUNT,
)
file_handler.setFormatter(formatter)

console_handler = logging.StreamHandler()
console_handler.setFormatter(formatter)

logging.basicConfig(level=logging.INFO, handlers=[file_handler, console_handler])
logger = logging.getLogger(__name__)

# --- Configuration ---
# LINE Messaging API credentials
LINE_CHANNEL_ACCESS_TOKEN = os.environ.get("LINE_CHANNEL_ACCESS_TOKEN")
LINE_CHANNEL_SECRET = os.environ.get("LINE_CHANNEL_SECRET")

# Gemini settings
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY")
GEMINI_MODEL_NAME = os.environ.get("GEMINI_MODEL_NAME")
# Language detection only needs a small model; falls back to the main one
GEMINI_DETECTION_MODEL_NAME = (
    os.environ.get("GEMINI_DETECTION_MODEL_NAME") or GEMINI_MODEL_NAME
)

# Language resolution
LANGUAGE_DEFAULT = os.environ.get("LANGUAGE_DEFAULT", "ja").strip().lower()
LANGUAGE_POLICIES = [
    name.strip().lower()
    for name in os.environ.get("LANGUAGE_POLICIES", "detected,profile").split(",")
    if name.strip()
]
KNOWN_LANGUAGE_POLICIES = ("detected", "profile")

# Preference store: Redis when REDIS_URL is set, process memory otherwise
REDIS_URL = os.environ.get("REDIS_URL")
LANGUAGE_TTL_SECONDS_RAW = os.environ.get("LANGUAGE_TTL_SECONDS", "").strip()
# Invalid values are reported by validate_config()
LANGUAGE_TTL_SECONDS = (
    int(LANGUAGE_TTL_SECONDS_RAW) or None if LANGUAGE_TTL_SECONDS_RAW.isdecimal() else None
)

# Batch scheduling: "sequential" keeps reply order, "concurrent" fans out
DISPATCH_MODE = os.environ.get("DISPATCH_MODE", "sequential").strip().lower()
DISPATCH_MODES = ("sequential", "concurrent")


def validate_config(check_prompts: bool = True, require_channel_secret: bool = True):
    """Validate that required environment variables and prompts are set.

    Args:
        check_prompts: If True, validates that required prompts are loaded
        require_channel_secret: If True, LINE_CHANNEL_SECRET must be set so
            webhook signatures can be verified
    """
    if not LINE_CHANNEL_ACCESS_TOKEN:
        logger.error("Error: LINE_CHANNEL_ACCESS_TOKEN environment variable not set.")
        return False
    if require_channel_secret and not LINE_CHANNEL_SECRET:
        logger.error("Error: LINE_CHANNEL_SECRET environment variable not set.")
        return False
    if not GEMINI_API_KEY:
        logger.error("Error: GEMINI_API_KEY environment variable not set.")
        return False
    if not GEMINI_MODEL_NAME:
        logger.error(
            "Error: GEMINI_MODEL_NAME environment variable not set. Please set it to your desired Gemini model."
        )
        return False
    if not LANGUAGE_DEFAULT:
        logger.error("Error: LANGUAGE_DEFAULT must not be empty.")
        return False

    unknown_policies = [p for p in LANGUAGE_POLICIES if p not in KNOWN_LANGUAGE_POLICIES]
    if unknown_policies:
        logger.error(
            f"Error: Unknown LANGUAGE_POLICIES entries: {', '.join(unknown_policies)}"
        )
        return False
    if LANGUAGE_TTL_SECONDS_RAW and not LANGUAGE_TTL_SECONDS:
        logger.error(
            f"Error: LANGUAGE_TTL_SECONDS must be a positive integer, got {LANGUAGE_TTL_SECONDS_RAW!r}"
        )
        return False
    if DISPATCH_MODE not in DISPATCH_MODES:
        logger.error(
            f"Error: DISPATCH_MODE must be one of {', '.join(DISPATCH_MODES)}, got {DISPATCH_MODE!r}"
        )
        return False

    if check_prompts:
        prompts_valid, missing = validate_prompts()
        if not prompts_valid:
            logger.error(f"Error: Missing required prompts: {', '.join(missing)}")
            return False

    return True


# --- Prompt Loading ---
PROMPTS_DIR = Path(__file__).parent / "prompts"


def _load_prompts_from_file(filename: str) -> dict[str, str]:
    """
    Load prompts from a markdown file.

    The file format uses '---' separators and '## section_name' headers.
    Returns a dict mapping section names to prompt text.
    """
    filepath = PROMPTS_DIR / filename
    if not filepath.exists():
        logger.warning(f"Prompt file not found: {filepath}")
        return {}

    content = filepath.read_text(encoding="utf-8")

    prompts = {}
    sections = re.split(r"\n---\n", content)

    for section in sections:
        match = re.match(r"\s*##\s+(\w+)\s*\n(.*)", section, re.DOTALL)
        if match:
            name = match.group(1).strip()
            text = match.group(2).strip()
            prompts[name] = text

    return prompts


def load_all_prompts() -> dict[str, dict[str, str]]:
    """
    Load all prompts from the prompts directory.

    Returns a nested dict: {category: {prompt_name: prompt_text}}
    """
    return {
        "vision": _load_prompts_from_file("vision.md"),
        "language": _load_prompts_from_file("language.md"),
    }


# Load prompts at module import time
PROMPTS = load_all_prompts()

# Required prompts that must exist for the relay to function
REQUIRED_PROMPTS = [
    ("vision", "landmark_guide"),
    ("language", "detection"),
    ("language", "confirmation"),
]


def validate_prompts() -> tuple[bool, list[str]]:
    """
    Validate that all required prompts are loaded.

    Returns:
        Tuple of (is_valid, list of missing prompts)
    """
    missing = []
    for category, name in REQUIRED_PROMPTS:
        if not PROMPTS.get(category, {}).get(name):
            missing.append(f"{category}.{name}")

    return len(missing) == 0, missing
