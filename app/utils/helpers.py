"""
Helper utility functions for file operations and common tasks.
"""

import os
import json
import time
import secrets
import string
from datetime import datetime, timezone

_ID_ALPHABET = string.digits + string.ascii_lowercase


def load_json_file(filepath, default=None):
    """
    Load JSON data from a file.

    Args:
        filepath: Path to the JSON file
        default: Default value if file doesn't exist (defaults to empty list)

    Returns:
        Parsed JSON data or default value
    """
    if filepath and os.path.exists(filepath):
        with open(filepath, 'r', encoding='utf-8') as f:
            return json.load(f)
    return default if default is not None else []


def generate_id(prefix):
    """
    Build a record id of the form ``<prefix>-<epoch ms>-<9 base36 chars>``.

    Args:
        prefix: Entity prefix such as ``msg`` or ``photo``

    Returns:
        Identifier string
    """
    suffix = ''.join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


def utc_now_iso():
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')
