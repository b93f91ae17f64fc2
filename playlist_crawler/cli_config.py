"""Locate and load the .env file used by the CLI."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, List, Mapping, Optional

LOGGER = logging.getLogger(__name__)

ENV_FILE_VAR = "PLAYLIST_CRAWLER_ENV_FILE"

# Written to the user config directory on first use. Everything stays
# commented out so that the file never overrides the built-in defaults.
ENV_TEMPLATE = """\
# playlist-crawler settings. Uncomment to use.

# Proxy for the crawl browser
# PLAYLIST_CRAWLER_PROXY_URL=http://proxy.example.com:8000
# PLAYLIST_CRAWLER_PROXY_USERNAME=
# PLAYLIST_CRAWLER_PROXY_PASSWORD=

# Set to 0 to watch the browser work
# PLAYLIST_CRAWLER_HEADLESS=0

# Requests processed in parallel
# PLAYLIST_CRAWLER_CONCURRENCY=3

# Search site base URL
# PLAYLIST_CRAWLER_BASE_URL=https://open.spotify.com
"""


def env_file_candidates(
    cwd: Path,
    user_env_file: Path,
    environ: Optional[Mapping[str, str]] = None,
) -> List[Path]:
    """Files to try, highest priority first.

    ``$PLAYLIST_CRAWLER_ENV_FILE`` comes first when set, then ``.env`` in
    *cwd*, then the per-user file.
    """
    environ = os.environ if environ is None else environ
    candidates: List[Path] = []
    explicit = environ.get(ENV_FILE_VAR, "").strip()
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.append(cwd / ".env")
    candidates.append(user_env_file)
    return candidates


def seed_user_env_file(user_env_file: Path) -> Optional[Path]:
    """Write ENV_TEMPLATE to *user_env_file*; None if it cannot be created."""
    try:
        user_env_file.parent.mkdir(parents=True, exist_ok=True)
        user_env_file.write_text(ENV_TEMPLATE, encoding="utf-8")
    except OSError as exc:
        LOGGER.debug("Could not create %s: %s", user_env_file, exc)
        return None
    LOGGER.info("Created config file at %s; edit it to set a proxy or browser defaults.", user_env_file)
    return user_env_file


def load_config(
    *,
    cwd: Path,
    user_env_file: Path,
    load_env: Callable[[Path], bool],
    environ: Optional[Mapping[str, str]] = None,
    seed: bool = True,
) -> Optional[Path]:
    """Load the first existing env file and return it.

    When no candidate exists and *seed* is set, the per-user file is created
    from ENV_TEMPLATE and loaded. Variables already set in the process
    environment keep their values (``load_env`` is ``dotenv.load_dotenv``).
    """
    candidates = env_file_candidates(cwd, user_env_file, environ)
    env_file = next((path for path in candidates if path.is_file()), None)

    if env_file is None:
        if len(candidates) == 3:
            LOGGER.warning("%s points to a missing file: %s", ENV_FILE_VAR, candidates[0])
        if not seed:
            return None
        env_file = seed_user_env_file(user_env_file)
        if env_file is None:
            return None

    load_env(env_file)
    LOGGER.debug("Loaded settings from %s", env_file)
    return env_file
