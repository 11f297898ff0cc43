from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from playmix.domain.entities import ArtistMatch, AuthSession
from playmix.domain.errors import NotFound
from playmix.domain.ports import MusicPlatform

logger = logging.getLogger(__name__)


def select_best_match(name: str, candidates: Sequence[ArtistMatch]) -> Optional[ArtistMatch]:
    """Pick the best artist among search candidates.

    Candidates are scanned in the order the search API ranked them. The first
    one whose name equals ``name`` case-insensitively wins; without such a
    candidate the top-ranked one is returned. No local scoring is applied, so
    ties always resolve to the API's ranking.

    Returns:
        The selected candidate, or None when there are no candidates
    """
    if not candidates:
        return None

    wanted = name.casefold()
    for candidate in candidates:
        if candidate.name.casefold() == wanted:
            return candidate
    return candidates[0]


class ArtistResolver:
    """Resolves free-text artist names to a single artist record."""

    def __init__(self, platform: MusicPlatform, search_limit: int = 5):
        self.platform = platform
        self.search_limit = max(1, search_limit)

    def search(self, session: AuthSession, name: str, limit: int = 10) -> List[ArtistMatch]:
        """Return the raw candidate page for ``name``."""
        session.require_authenticated()
        return self.platform.search_artists(session, name, limit)

    def resolve(self, session: AuthSession, name: str) -> ArtistMatch:
        """Resolve ``name`` to its best-matching artist.

        Raises:
            Unauthenticated: the session is not authenticated
            NotFound: the search returned no candidates
            RemoteError: the search failed
        """
        candidates = self.search(session, name, self.search_limit)
        match = select_best_match(name, candidates)
        if match is None:
            raise NotFound(f"Artist not found: {name}")

        logger.info(f"Found artist: {match.name} (searched for: {name})")
        return match
