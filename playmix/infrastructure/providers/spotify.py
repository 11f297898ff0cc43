import logging
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib3.exceptions import ReadTimeoutError

import requests
import spotipy
from spotipy import SpotifyException

from playmix.domain.entities import ArtistMatch, AuthSession, CreatedPlaylist, TopTrack
from playmix.domain.errors import RemoteError
from playmix.domain.ports import MusicPlatform

logger = logging.getLogger(__name__)

# Spotify accepts at most 100 URIs per add-items request
MAX_TRACKS_PER_REQUEST = 100
MAX_DESCRIPTION_LENGTH = 300


def _chunked(seq: Sequence[str], size: int = MAX_TRACKS_PER_REQUEST):
    for i in range(0, len(seq), size):
        yield list(seq[i:i + size])


class SpotifyPlatform(MusicPlatform):
    """Spotify Web API implementation of the music platform port."""

    def __init__(self,
                 requests_timeout: int = 15,
                 client_factory: Optional[Callable[..., Any]] = None):
        """Initialize Spotify platform.

        Args:
            requests_timeout: Timeout in seconds for each API call
            client_factory: Callable building a spotipy client; defaults to ``spotipy.Spotify``
        """
        self.requests_timeout = requests_timeout
        self._client_factory = client_factory or spotipy.Spotify
        self._client = None
        self._client_token: Optional[str] = None

    def _client_for(self, session: AuthSession):
        """Return a client bound to the session's current access token."""
        if self._client is None or self._client_token != session.access_token:
            # No retries: failures surface to the caller immediately
            self._client = self._client_factory(
                auth=session.access_token,
                requests_timeout=self.requests_timeout,
                retries=0,
                status_retries=0,
            )
            self._client_token = session.access_token
        return self._client

    def _call(self, operation: str, fn: Callable[..., Any], *args, **kwargs) -> Any:
        try:
            return fn(*args, **kwargs)
        except SpotifyException as e:
            status = getattr(e, 'http_status', None)
            if status == 401:
                logger.warning(f"Spotify rejected the access token during {operation}")
            raise RemoteError(f"Spotify error during {operation} ({status}): {getattr(e, 'msg', e)}",
                              status=status)
        except ReadTimeoutError as e:
            raise RemoteError(f"Timeout during {operation}: {e}")
        except requests.RequestException as e:
            raise RemoteError(f"Network error during {operation}: {e}")

    def _spotify_artist_to_domain(self, artist: Dict[str, Any]) -> ArtistMatch:
        return ArtistMatch(
            id=artist['id'],
            name=artist.get('name', ''),
            popularity=artist.get('popularity') or 0,
            follower_count=(artist.get('followers') or {}).get('total') or 0,
            genres=list(artist.get('genres') or []),
        )

    def _spotify_track_to_domain(self, track: Dict[str, Any]) -> Optional[TopTrack]:
        track_id = track.get('id')
        uri = track.get('uri') or (f"spotify:track:{track_id}" if track_id else None)
        if not uri:
            logger.warning(f"Skipping top track without URI: {track.get('name')}")
            return None
        return TopTrack(
            id=track_id,
            uri=uri,
            name=track.get('name', ''),
            popularity=track.get('popularity') or 0,
            duration_ms=track.get('duration_ms') or 0,
            preview_url=track.get('preview_url'),
            external_url=(track.get('external_urls') or {}).get('spotify'),
        )

    def search_artists(self, session: AuthSession, query: str, limit: int) -> List[ArtistMatch]:
        """Search artists by free text.

        Args:
            session: Authenticated session
            query: Artist name as typed by the user
            limit: Maximum number of candidates (single page)

        Returns:
            Candidates in Spotify's ranking order
        """
        client = self._client_for(session)
        logger.debug(f"Searching artists: {query} (limit={limit})")
        results = self._call('artist search', client.search, q=query, type='artist', limit=limit)

        items = ((results or {}).get('artists') or {}).get('items') or []
        return [self._spotify_artist_to_domain(item) for item in items if item and item.get('id')]

    def get_artist_top_tracks(self, session: AuthSession, artist_id: str, country: str = 'US') -> List[TopTrack]:
        """Get an artist's top tracks for one market."""
        client = self._client_for(session)
        results = self._call('top tracks lookup', client.artist_top_tracks, artist_id, country=country)

        tracks = []
        for item in (results or {}).get('tracks') or []:
            track = self._spotify_track_to_domain(item)
            if track:
                tracks.append(track)
        return tracks

    def create_playlist(self, session: AuthSession, name: str, description: str = '',
                        public: bool = False) -> CreatedPlaylist:
        """Create a new playlist for the current user."""
        client = self._client_for(session)
        user = self._call('current user lookup', client.current_user)

        if len(description) > MAX_DESCRIPTION_LENGTH:
            description = description[:MAX_DESCRIPTION_LENGTH - 3] + '...'

        logger.info(f"Creating playlist: {name}")
        result = self._call('playlist creation', client.user_playlist_create,
                            user['id'], name, public=public, description=description)

        return CreatedPlaylist(
            id=result['id'],
            name=result.get('name', name),
            url=(result.get('external_urls') or {}).get('spotify'),
        )

    def add_tracks_to_playlist(self, session: AuthSession, playlist_id: str, uris: Sequence[str]) -> None:
        """Add tracks in order, in chunks of at most 100 URIs."""
        if not uris:
            return

        client = self._client_for(session)
        for batch in _chunked(uris):
            self._call('adding tracks', client.playlist_add_items, playlist_id, batch)
        logger.debug(f"Added {len(uris)} tracks to playlist {playlist_id}")
