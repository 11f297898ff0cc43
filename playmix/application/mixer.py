import logging
from typing import List

from playmix.application.resolver import ArtistResolver
from playmix.crosscutting.logging import (
    CorrelationContext, log_artist_skipped, log_mix_complete, log_mix_start
)
from playmix.domain.entities import ArtistOutcome, AuthSession, MixRequest, MixResult, Track
from playmix.domain.errors import NoTracksFound, NotFound, RemoteError
from playmix.domain.ports import MusicPlatform

logger = logging.getLogger(__name__)


def build_description(found_artists: List[str], requested_artists: List[str]) -> str:
    return (f"Mixed playlist featuring: {', '.join(found_artists)} "
            f"(requested: {', '.join(requested_artists)})")


class PlaylistMixer:
    """Builds a playlist from the top tracks of several artists, in request order."""

    def __init__(self, platform: MusicPlatform, resolver: ArtistResolver, market: str = 'US'):
        """Initialize mixer.

        Args:
            platform: Remote music platform
            resolver: Resolver used for every requested artist
            market: Region used for top-track lookups
        """
        self.platform = platform
        self.resolver = resolver
        self.market = market

    def collect(self, session: AuthSession, name: str, songs_per_artist: int) -> ArtistOutcome:
        """Resolve one artist and take the head of its top tracks.

        Not-found artists and remote failures become a skipped outcome instead of
        an exception.
        """
        with CorrelationContext(artist=name, stage='collect'):
            try:
                artist = self.resolver.resolve(session, name)
                top_tracks = self.platform.get_artist_top_tracks(session, artist.id, self.market)
            except NotFound:
                log_artist_skipped(logger, name, 'not found')
                return ArtistOutcome.skipped(name, 'not found')
            except RemoteError as e:
                log_artist_skipped(logger, name, str(e), status=e.status)
                return ArtistOutcome.skipped(name, str(e))

            selected = top_tracks[:max(songs_per_artist, 0)]
            logger.info(f"Adding {len(selected)} tracks from {artist.name}")

            return ArtistOutcome(
                searched_for_name=name,
                artist=artist,
                tracks=[
                    Track(uri=t.uri, name=t.name, artist_name=artist.name, searched_for_name=name)
                    for t in selected
                ],
            )

    def mix(self, session: AuthSession, request: MixRequest) -> MixResult:
        """Create a new playlist mixing ``songs_per_artist`` top tracks of each requested artist.

        Raises:
            Unauthenticated: the session is not authenticated
            NoTracksFound: no requested artist contributed a track
            RemoteError: playlist creation or adding tracks failed
        """
        session.require_authenticated()

        requested = list(request.artist_names)
        log_mix_start(logger, requested, request.playlist_name, request.songs_per_artist)

        outcomes = [self.collect(session, name, request.songs_per_artist) for name in requested]
        resolved = [outcome for outcome in outcomes if outcome.resolved]

        tracks = [track for outcome in resolved for track in outcome.tracks]
        found_artists = [outcome.artist.name for outcome in resolved]

        if not tracks:
            raise NoTracksFound("No tracks found for any of the specified artists")

        logger.info(f"Creating playlist with {len(tracks)} tracks from: {', '.join(found_artists)}")
        playlist = self.platform.create_playlist(
            session,
            request.playlist_name,
            description=build_description(found_artists, requested),
            public=False,
        )
        self.platform.add_tracks_to_playlist(session, playlist.id, [track.uri for track in tracks])

        log_mix_complete(logger, playlist.id, len(tracks), found_artists)

        return MixResult(
            playlist_id=playlist.id,
            playlist_url=playlist.url,
            tracks=tracks,
            requested_artists=requested,
            found_artists=found_artists,
        )
