"""
Authentication state management for persistent sessions across tests.

Azure AD sign-in takes several redirects and is the slowest part of every
authenticated journey. Once one test has signed in, the context's cookies are
saved and later tests start from them, falling back to a fresh sign-in when
they no longer authenticate.
"""

import json
from pathlib import Path
from typing import Union

from playwright.async_api import BrowserContext

from journey_tests.config import SessionConfig
from journey_tests.env_defaults import REPO_ROOT

# Storage state files (Playwright session cookies/localStorage)
AUTH_STATE_DIR = REPO_ROOT / "tmp" / "auth-states"


def auth_state_path(config: SessionConfig, name: str = "user") -> Path:
    """Path of the saved state for ``name`` in the configured environment.

    Args:
        config: Session configuration (its environment keys the file)
        name: Name for the auth state file (e.g. "user", "admin")

    Returns:
        Path to ``{environment}_{name}_auth_state.json``
    """
    environment = config.environment or "local"
    return AUTH_STATE_DIR / f"{environment}_{name}_auth_state.json"


async def save_auth_state(context: BrowserContext, path: Union[str, Path]) -> Path:
    """Save authentication state (cookies, localStorage) to ``path``.

    Args:
        context: Playwright browser context after a successful sign-in
        path: Where to write the state file

    Returns:
        Path to saved state file
    """
    state_file = Path(path)
    state_file.parent.mkdir(parents=True, exist_ok=True)
    await context.storage_state(path=str(state_file))
    print(f"✓ Saved auth state to: {state_file}")
    return state_file


async def load_auth_state(context: BrowserContext, path: Union[str, Path]) -> bool:
    """Load saved cookies into ``context``.

    Args:
        context: Playwright browser context to load state into
        path: State file written by :func:`save_auth_state`

    Returns:
        True if state loaded successfully, False if not found or unreadable
    """
    state_file = Path(path)

    if not state_file.exists():
        return False

    try:
        with open(state_file) as f:
            state = json.load(f)
    except (OSError, ValueError) as exc:
        print(f"⚠️  Ignoring unreadable auth state {state_file}: {exc}")
        return False

    cookies = state.get("cookies") or []
    if not cookies:
        return False

    await context.add_cookies(cookies)
    print(f"✓ Loaded {len(cookies)} cookies from {state_file}")
    return True


def clear_auth_state(path: Union[str, Path]) -> None:
    """Delete saved authentication state."""
    state_file = Path(path)
    if state_file.exists():
        state_file.unlink()
        print(f"✓ Cleared auth state: {state_file}")
