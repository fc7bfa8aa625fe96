from __future__ import annotations
import os

from dotenv import load_dotenv

from .api.client import BangumiClient

DEFAULT_TIMEOUT = 30.0


def client_from_env() -> BangumiClient:
    """
    Build a client for the command-line entrypoints.
    BANGUMI_TIMEOUT (seconds) may be set in the environment or a .env file.
    """
    load_dotenv()
    raw = os.getenv("BANGUMI_TIMEOUT")
    try:
        timeout = float(raw) if raw else DEFAULT_TIMEOUT
    except ValueError:
        raise SystemExit(f"BANGUMI_TIMEOUT must be a number of seconds, got {raw!r}")
    return BangumiClient(timeout=timeout)
