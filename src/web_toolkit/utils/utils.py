import logging
import os
import re
import secrets

from web_toolkit.common.errors import EmptyInputError, EmptyResultError
from web_toolkit.common.settings import settings

logger = logging.getLogger(__name__)

RANDOM_STRING_SOURCE = (
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_+"
)

_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")


def random_string(n: int) -> str:
    """Return n characters drawn uniformly from RANDOM_STRING_SOURCE"""
    if n < 0:
        raise ValueError("random string length must not be negative")
    return "".join(secrets.choice(RANDOM_STRING_SOURCE) for _ in range(n))


def create_dir_if_not_exist(path: str | os.PathLike, mode: int | None = None) -> None:
    """Create a directory and all missing parents; an existing one is left alone"""
    if mode is None:
        mode = settings.DIR_MODE
    if os.path.isdir(path):
        return
    # exist_ok covers a concurrent creator winning the race
    os.makedirs(path, mode=mode, exist_ok=True)
    logger.debug("Created directory %s", path)


def slugify(s: str) -> str:
    """A (very) simple means of creating a URL-safe slug from a string"""
    if s == "":
        raise EmptyInputError()
    slug = _SLUG_SEPARATORS.sub("-", s.lower()).strip("-")
    if not slug:
        raise EmptyResultError()
    return slug
