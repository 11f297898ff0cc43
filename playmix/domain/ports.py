from __future__ import annotations

from typing import Any, Dict, List, Protocol, Sequence

from .entities import ArtistMatch, AuthSession, CreatedPlaylist, TopTrack


class MusicPlatform(Protocol):
    """Port defining the remote operations the mixer depends on.

    Every call receives the session whose access token it must use.
    Implementations raise ``RemoteError`` for any platform or network failure.
    """

    def search_artists(self, session: AuthSession, query: str, limit: int) -> List[ArtistMatch]:
        """Return up to ``limit`` artists in the platform's ranking order."""

    def get_artist_top_tracks(self, session: AuthSession, artist_id: str, country: str = 'US') -> List[TopTrack]:
        """Return the artist's top tracks for a single region."""

    def create_playlist(self, session: AuthSession, name: str, description: str = '',
                        public: bool = False) -> CreatedPlaylist:
        """Create a new playlist owned by the current user."""

    def add_tracks_to_playlist(self, session: AuthSession, playlist_id: str, uris: Sequence[str]) -> None:
        """Append tracks to the playlist, preserving the given order."""


class OAuthProvider(Protocol):
    """Port for the OAuth2 authorization-code flow."""

    def authorize_url(self, scopes: Sequence[str], state: str) -> str:
        """Build the URL the user visits to grant access."""

    def exchange_code(self, code: str) -> Dict[str, Any]:
        """Trade an authorization code for a token response.

        Raises ``AuthError`` when the code is rejected.
        """
