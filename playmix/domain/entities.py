from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import Unauthenticated


@dataclass
class AuthSession:
    """Single-user authentication state shared by every gated operation.

    Created unauthenticated at process start and mutated only by the
    authenticator. There is no expiry tracking: an expired token shows up as a
    remote error on the next call.
    """

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    is_authenticated: bool = False
    pending_state: Optional[str] = None

    def require_authenticated(self) -> None:
        if not self.is_authenticated:
            raise Unauthenticated("Please authenticate with Spotify first")

    def authenticate(self, access_token: str, refresh_token: Optional[str] = None) -> None:
        self.access_token = access_token
        if refresh_token:
            self.refresh_token = refresh_token
        self.is_authenticated = True
        self.pending_state = None


@dataclass(frozen=True)
class ArtistMatch:
    """Artist record returned by a search."""

    id: str
    name: str
    popularity: int = 0
    follower_count: int = 0
    genres: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'popularity': self.popularity,
            'followers': self.follower_count,
            'genres': list(self.genres),
        }


@dataclass(frozen=True)
class TopTrack:
    """Entry of an artist's region-scoped top tracks list."""

    id: Optional[str]
    uri: str
    name: str
    popularity: int = 0
    duration_ms: int = 0
    preview_url: Optional[str] = None
    external_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'uri': self.uri,
            'name': self.name,
            'popularity': self.popularity,
            'duration_ms': self.duration_ms,
            'preview_url': self.preview_url,
            'external_url': self.external_url,
        }


@dataclass(frozen=True)
class Track:
    """Track selected for a mix, attributed to the resolved artist and the original query."""

    uri: str
    name: str
    artist_name: str
    searched_for_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'artist': self.artist_name,
            'searched_for': self.searched_for_name,
        }


@dataclass(frozen=True)
class CreatedPlaylist:
    id: str
    name: str
    url: Optional[str] = None


@dataclass(frozen=True)
class MixRequest:
    """Request to build a playlist from the top tracks of several artists."""

    artist_names: List[str]
    playlist_name: str
    songs_per_artist: int = 5


@dataclass(frozen=True)
class ArtistOutcome:
    """Result of processing one requested artist: either resolved with tracks or skipped."""

    searched_for_name: str
    artist: Optional[ArtistMatch] = None
    tracks: List[Track] = field(default_factory=list)
    skip_reason: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.artist is not None

    @classmethod
    def skipped(cls, searched_for_name: str, reason: str) -> 'ArtistOutcome':
        return cls(searched_for_name=searched_for_name, skip_reason=reason)


@dataclass(frozen=True)
class MixResult:
    """Outcome of a successful mix."""

    playlist_id: str
    playlist_url: Optional[str]
    tracks: List[Track]
    requested_artists: List[str]
    found_artists: List[str]

    @property
    def tracks_added(self) -> int:
        return len(self.tracks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': True,
            'playlist_url': self.playlist_url,
            'playlist_id': self.playlist_id,
            'tracks_added': self.tracks_added,
            'requested_artists': list(self.requested_artists),
            'found_artists': list(self.found_artists),
            'tracks': [track.to_dict() for track in self.tracks],
        }
