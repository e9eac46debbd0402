"""
Visitor identity resolution.

The booking page needs a stable user id before anything else. Sources are
tried in order and the first one that yields an id wins:

1. LoginSessionSource: the LINE login SDK profile, when logged in
2. QueryParamSource: a ``userId`` query parameter on the page URL
3. SessionFileSource: an id persisted by an earlier run
4. GeneratedSource: a fresh LINE-style pseudo id, persisted for next time

A source that raises is logged and skipped.
"""

import logging
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Protocol
from urllib.parse import parse_qs, urlparse

from studio_booking.config import settings

logger = logging.getLogger(__name__)

PSEUDO_ID_PREFIX = "U"
PSEUDO_ID_HEX_LENGTH = 30


@dataclass(frozen=True)
class Identity:
    user_id: str
    display_name: str = ""
    source: str = ""


class IdentitySource(Protocol):
    name: str

    async def resolve(self) -> Optional[Identity]:
        ...


def generate_pseudo_id() -> str:
    """A LINE-style id: ``U`` followed by 30 hex characters."""
    return PSEUDO_ID_PREFIX + secrets.token_hex(PSEUDO_ID_HEX_LENGTH // 2)


class LoginSessionSource:
    """Profile from the embedded login SDK.

    ``profile_loader`` returns the SDK profile (``userId`` and
    ``displayName`` keys) or None when the visitor is not logged in.
    """

    name = "login"

    def __init__(self, profile_loader: Callable[[], Awaitable[Optional[dict[str, Any]]]]) -> None:
        self._profile_loader = profile_loader

    async def resolve(self) -> Optional[Identity]:
        profile = await self._profile_loader()
        if not profile or not profile.get("userId"):
            return None
        return Identity(
            user_id=profile["userId"],
            display_name=profile.get("displayName") or "",
            source=self.name,
        )


class QueryParamSource:
    """User id passed in the page URL or a bare query string."""

    name = "query"

    def __init__(self, url_or_query: str, param: Optional[str] = None) -> None:
        self._raw = url_or_query or ""
        self._param = param or settings.identity.user_id_param

    async def resolve(self) -> Optional[Identity]:
        query = urlparse(self._raw).query if "?" in self._raw else self._raw.lstrip("?")
        values = parse_qs(query).get(self._param)
        if not values or not values[0].strip():
            return None
        return Identity(user_id=values[0].strip(), source=self.name)


class SessionFileSource:
    """Id persisted on disk by a previous run."""

    name = "session"

    def __init__(self, path: Optional[str] = None) -> None:
        self._path = Path(path or settings.identity.session_file)

    async def resolve(self) -> Optional[Identity]:
        if not self._path.exists():
            return None
        stored = self._path.read_text(encoding="utf-8").strip()
        return Identity(user_id=stored, source=self.name) if stored else None


class GeneratedSource:
    """Fresh pseudo id, written to the session file so later runs reuse it."""

    name = "generated"

    def __init__(self, path: Optional[str] = None) -> None:
        self._path = Path(path or settings.identity.session_file)

    async def resolve(self) -> Optional[Identity]:
        user_id = generate_pseudo_id()
        try:
            self._path.write_text(user_id, encoding="utf-8")
        except OSError as e:
            logger.warning("Could not persist session id to %s: %s", self._path, e)
        logger.info("Generated new session id: %s", user_id)
        return Identity(user_id=user_id, source=self.name)


class IdentityProvider:
    """Tries each source in order."""

    def __init__(self, sources: list[IdentitySource]) -> None:
        if not sources:
            raise ValueError("IdentityProvider needs at least one source")
        self._sources = list(sources)

    async def resolve(self) -> Identity:
        """Return the first identity found.

        Raises:
            LookupError: no source produced an identity.
        """
        for source in self._sources:
            try:
                identity = await source.resolve()
            except Exception as e:
                logger.warning("Identity source '%s' failed: %s", source.name, e)
                continue
            if identity is not None:
                logger.debug("Identity resolved from '%s'", source.name)
                return identity
        raise LookupError("No identity source produced a user id")


def default_identity_provider(
    url: str = "",
    profile_loader: Optional[Callable[[], Awaitable[Optional[dict[str, Any]]]]] = None,
    session_file: Optional[str] = None,
) -> IdentityProvider:
    """The standard chain: login SDK, URL, persisted session, generated id."""
    sources: list[IdentitySource] = []
    if profile_loader is not None:
        sources.append(LoginSessionSource(profile_loader))
    sources.extend([
        QueryParamSource(url),
        SessionFileSource(session_file),
        GeneratedSource(session_file),
    ])
    return IdentityProvider(sources)
