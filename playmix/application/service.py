import logging
from typing import Any, Dict, List, Optional, Sequence

from playmix.application.auth import Authenticator
from playmix.application.mixer import PlaylistMixer
from playmix.application.resolver import ArtistResolver
from playmix.crosscutting.config import Settings
from playmix.domain.entities import ArtistMatch, AuthSession, MixRequest, MixResult, TopTrack
from playmix.domain.ports import MusicPlatform
from playmix.infrastructure.providers.spotify import SpotifyPlatform
from playmix.infrastructure.providers.spotify_oauth import SpotifyOAuthClient

logger = logging.getLogger(__name__)


class PlaylistService:
    """Facade shared by the HTTP and agent-tool adapters.

    Holds the single process-wide session and passes it explicitly to every
    gated operation.
    """

    def __init__(self, settings: Settings, platform: MusicPlatform,
                 authenticator: Authenticator, session: AuthSession):
        self.settings = settings
        self.platform = platform
        self.session = session
        self.authenticator = authenticator
        self.resolver = ArtistResolver(platform, search_limit=settings.search_limit)
        self.mixer = PlaylistMixer(platform, self.resolver, market=settings.market)

    @property
    def is_authenticated(self) -> bool:
        return self.session.is_authenticated

    def authorization_url(self) -> str:
        return self.authenticator.get_authorization_url()

    def complete_authorization(self, code: str, state: Optional[str] = None,
                               require_state: bool = False) -> AuthSession:
        return self.authenticator.complete_authorization(code, state, require_state)

    def set_tokens(self, access_token: str, refresh_token: Optional[str] = None) -> AuthSession:
        return self.authenticator.set_tokens(access_token, refresh_token)

    def search_artists(self, artist_name: str, limit: int = 10) -> List[ArtistMatch]:
        return self.resolver.search(self.session, artist_name, limit)

    def artist_top_tracks(self, artist_id: str, country: Optional[str] = None) -> List[TopTrack]:
        self.session.require_authenticated()
        return self.platform.get_artist_top_tracks(self.session, artist_id, country or self.settings.market)

    def create_mixed_playlist(self, artists: Sequence[str], playlist_name: str,
                              songs_per_artist: Optional[int] = None) -> MixResult:
        if songs_per_artist is None:
            songs_per_artist = self.settings.default_songs_per_artist
        request = MixRequest(
            artist_names=list(artists),
            playlist_name=playlist_name,
            songs_per_artist=songs_per_artist,
        )
        return self.mixer.mix(self.session, request)

    def status(self) -> Dict[str, Any]:
        return {'status': 'ok', 'authenticated': self.session.is_authenticated}


def build_service(settings: Settings) -> PlaylistService:
    """Wire the production object graph around a fresh unauthenticated session."""
    session = AuthSession()
    platform = SpotifyPlatform(requests_timeout=settings.requests_timeout)
    authenticator = Authenticator(
        session,
        settings,
        lambda s: SpotifyOAuthClient(s.get_spotify_client_config(), timeout=s.requests_timeout),
    )

    if not settings.has_client_credentials():
        logger.warning("Spotify client credentials are not configured; "
                       "set SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET before authenticating")

    return PlaylistService(settings, platform, authenticator, session)
