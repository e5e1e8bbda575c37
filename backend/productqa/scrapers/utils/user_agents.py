"""User-Agent rotation utilities for anti-detection."""

import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from productqa.config import settings


# Realistic desktop user-agent strings
# Mix of Chrome, Firefox, Safari, and Edge on Windows, macOS and Linux
USER_AGENTS: List[str] = [
    # Chrome on Windows
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36",
    # Chrome on macOS
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    # Firefox on Windows / macOS
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:133.0) Gecko/20100101 Firefox/133.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:133.0) Gecko/20100101 Firefox/133.0",
    # Safari on macOS
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/18.1 Safari/605.1.15",
    # Edge on Windows
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36 Edg/131.0.0.0",
    # Chrome on Linux
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
]

# Many shops allowlist search-engine crawlers
CRAWLER_USER_AGENT = "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"

DOCUMENT_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,"
    "image/avif,image/webp,image/apng,*/*;q=0.8"
)


@dataclass(frozen=True)
class Identity:
    """A request identity: user agent plus the headers a real browser sends."""

    user_agent: str
    accept_language: str

    def headers(self) -> Dict[str, str]:
        """Build a full browser-like header set for a top-level navigation."""
        return {
            "User-Agent": self.user_agent,
            "Accept": DOCUMENT_ACCEPT,
            "Accept-Language": self.accept_language,
            "Accept-Encoding": "gzip, deflate",
            "Connection": "keep-alive",
            "Cache-Control": "max-age=0",
            "Sec-Fetch-Dest": "document",
            "Sec-Fetch-Mode": "navigate",
            "Sec-Fetch-Site": "none",
            "Sec-Fetch-User": "?1",
            "Upgrade-Insecure-Requests": "1",
            "DNT": "1",
        }


class IdentityRotator:
    """Supplies randomized request identities.

    Holds no per-request state, so one instance can be shared between
    pipeline runs. Pass a seeded ``random.Random`` for deterministic tests.
    """

    def __init__(
        self,
        user_agents: Optional[Sequence[str]] = None,
        accept_language: Optional[str] = None,
        rng: Optional[random.Random] = None,
    ):
        self._user_agents = list(user_agents or USER_AGENTS)
        if not self._user_agents:
            raise ValueError("user agent pool must not be empty")
        self._accept_language = accept_language or settings.FETCH_ACCEPT_LANGUAGE
        self._rng = rng or random.Random()

    def next_identity(self, previous: Optional[Identity] = None) -> Identity:
        """Pick a random identity, never repeating ``previous``'s user agent.

        Args:
            previous: Identity used by the preceding attempt, if any

        Returns:
            Identity for the next request
        """
        candidates = self._user_agents
        if previous is not None and len(candidates) > 1:
            candidates = [ua for ua in candidates if ua != previous.user_agent]
        return Identity(
            user_agent=self._rng.choice(candidates),
            accept_language=self._accept_language,
        )

    def crawler_identity(self) -> Identity:
        """Search-engine crawler identity used by the browser fallback."""
        return Identity(
            user_agent=CRAWLER_USER_AGENT,
            accept_language=self._accept_language,
        )
