import logging
import os
import sys
from typing import Dict, List, Optional, Sequence

import pytest


def _ensure_project_root_on_sys_path() -> None:
    here = os.path.dirname(__file__)
    project_root = os.path.abspath(os.path.join(here, "..", ".."))
    if project_root not in sys.path:
        sys.path.insert(0, project_root)


_ensure_project_root_on_sys_path()

from playmix.application.auth import Authenticator  # noqa: E402
from playmix.application.service import PlaylistService  # noqa: E402
from playmix.crosscutting.config import Settings  # noqa: E402
from playmix.domain.entities import ArtistMatch, AuthSession, CreatedPlaylist, TopTrack  # noqa: E402
from playmix.domain.errors import AuthError, RemoteError  # noqa: E402


def make_artist(artist_id: str, name: str, popularity: int = 50) -> ArtistMatch:
    return ArtistMatch(id=artist_id, name=name, popularity=popularity,
                       follower_count=1000, genres=['pop'])


def make_tracks(prefix: str, count: int) -> List[TopTrack]:
    return [
        TopTrack(id=f"{prefix}{i}", uri=f"spotify:track:{prefix}{i}", name=f"{prefix} song {i}")
        for i in range(1, count + 1)
    ]


class FakePlatform:
    """In-memory music platform recording every call."""

    def __init__(self):
        self.artists: Dict[str, List[ArtistMatch]] = {}
        self.top_tracks: Dict[str, List[TopTrack]] = {}
        self.failing_searches: Dict[str, RemoteError] = {}
        self.failing_top_tracks: Dict[str, RemoteError] = {}
        self.create_error: Optional[RemoteError] = None
        self.add_error: Optional[RemoteError] = None
        self.calls: List[tuple] = []
        self.created: List[CreatedPlaylist] = []
        self.added: Dict[str, List[str]] = {}

    def add_artist(self, query: str, candidates: List[ArtistMatch], tracks_per_artist: int = 10):
        self.artists[query.lower()] = candidates
        for candidate in candidates:
            self.top_tracks.setdefault(candidate.id, make_tracks(candidate.id, tracks_per_artist))

    def search_artists(self, session, query, limit):
        self.calls.append(('search_artists', query, limit))
        if query.lower() in self.failing_searches:
            raise self.failing_searches[query.lower()]
        return list(self.artists.get(query.lower(), []))[:limit]

    def get_artist_top_tracks(self, session, artist_id, country='US'):
        self.calls.append(('get_artist_top_tracks', artist_id, country))
        if artist_id in self.failing_top_tracks:
            raise self.failing_top_tracks[artist_id]
        return list(self.top_tracks.get(artist_id, []))

    def create_playlist(self, session, name, description='', public=False):
        self.calls.append(('create_playlist', name, description, public))
        if self.create_error:
            raise self.create_error
        playlist = CreatedPlaylist(
            id=f"playlist{len(self.created) + 1}",
            name=name,
            url=f"https://open.spotify.com/playlist/playlist{len(self.created) + 1}",
        )
        self.created.append(playlist)
        return playlist

    def add_tracks_to_playlist(self, session, playlist_id, uris: Sequence[str]):
        self.calls.append(('add_tracks_to_playlist', playlist_id, list(uris)))
        if self.add_error:
            raise self.add_error
        self.added.setdefault(playlist_id, []).extend(uris)


class FakeOAuth:
    """OAuth provider accepting a single known code."""

    def __init__(self, valid_code: str = 'good-code', scope: str = ''):
        self.valid_code = valid_code
        self.scope = scope
        self.exchanged: List[str] = []

    def authorize_url(self, scopes, state):
        return f"https://accounts.spotify.com/authorize?scope={'+'.join(scopes)}&state={state}"

    def exchange_code(self, code):
        self.exchanged.append(code)
        if code != self.valid_code:
            raise AuthError("Authorization code rejected (400)")
        return {'access_token': 'access-123', 'refresh_token': 'refresh-456', 'scope': self.scope}


@pytest.fixture
def settings(tmp_path):
    return Settings(env_file=str(tmp_path / '.env'), environ={
        'SPOTIFY_CLIENT_ID': 'client-id-123',
        'SPOTIFY_CLIENT_SECRET': 'client-secret-456',
    })


@pytest.fixture
def platform():
    return FakePlatform()


@pytest.fixture
def oauth():
    return FakeOAuth()


@pytest.fixture
def session():
    return AuthSession()


@pytest.fixture
def authenticated_session():
    session = AuthSession()
    session.authenticate('access-123', 'refresh-456')
    return session


@pytest.fixture
def service(settings, platform, oauth, session):
    authenticator = Authenticator(session, settings, lambda s: oauth)
    return PlaylistService(settings, platform, authenticator, session)


@pytest.fixture(autouse=True)
def _clear_spotify_env():
    """Keep Spotify credentials from the developer's shell out of tests."""
    keys = ['SPOTIFY_CLIENT_ID', 'SPOTIFY_CLIENT_SECRET', 'SPOTIFY_REDIRECT_URI']
    backup = {k: os.environ.get(k) for k in keys}
    for k in keys:
        os.environ.pop(k, None)
    try:
        yield
    finally:
        for k, v in backup.items():
            if v is None:
                os.environ.pop(k, None)
            else:
                os.environ[k] = v


@pytest.fixture(autouse=True)
def _reset_playmix_logger():
    """Undo setup_logging() so caplog keeps seeing playmix records."""
    yield
    logger = logging.getLogger('playmix')
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
