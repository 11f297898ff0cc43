import json
import logging
from functools import wraps
from typing import Annotated, Callable, List, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import Field

from playmix.application.service import PlaylistService
from playmix.crosscutting.config import MAX_SONGS_PER_ARTIST, MIN_SONGS_PER_ARTIST, ConfigError
from playmix.domain.errors import PlaymixError

logger = logging.getLogger(__name__)

SERVER_NAME = 'spotify-playlist-server'


def _tool_errors(name: str) -> Callable:
    """Report domain failures as tool errors carrying the tool name."""
    def decorator(fn: Callable) -> Callable:
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except (PlaymixError, ConfigError) as e:
                logger.warning(f"Tool {name} failed: {e}")
                raise ToolError(f"Error executing {name}: {e}") from e
        return wrapper
    return decorator


class SpotifyTools:
    """Agent-facing operations; each returns the text shown to the model."""

    def __init__(self, service: PlaylistService):
        self.service = service

    @_tool_errors('authenticate_spotify')
    def authenticate_spotify(self) -> str:
        auth_url = self.service.authorization_url()
        return (
            f"Please visit this URL to authenticate with Spotify:\n\n{auth_url}\n\n"
            "After authentication you will be redirected with a code. Use the "
            "'complete_authorization' tool with that code, or 'set_access_token' "
            "if you already hold an access token."
        )

    @_tool_errors('complete_authorization')
    def complete_authorization(self, code: str, state: Optional[str] = None) -> str:
        self.service.complete_authorization(code, state)
        return 'Successfully authenticated with Spotify!'

    @_tool_errors('set_access_token')
    def set_access_token(self, access_token: str, refresh_token: Optional[str] = None) -> str:
        self.service.set_tokens(access_token, refresh_token)
        return 'Successfully authenticated with Spotify!'

    @_tool_errors('search_artist')
    def search_artist(self, artist_name: str) -> str:
        artists = [artist.to_dict() for artist in self.service.search_artists(artist_name)]
        return f"Found {len(artists)} artists:\n\n{json.dumps(artists, indent=2, ensure_ascii=False)}"

    @_tool_errors('get_artist_top_tracks')
    def get_artist_top_tracks(self, artist_id: str, country: Optional[str] = None) -> str:
        tracks = [track.to_dict() for track in self.service.artist_top_tracks(artist_id, country)]
        return f"Top tracks:\n\n{json.dumps(tracks, indent=2, ensure_ascii=False)}"

    @_tool_errors('create_mixed_playlist')
    def create_mixed_playlist(self, artists: List[str], playlist_name: str,
                              songs_per_artist: Optional[int] = None) -> str:
        result = self.service.create_mixed_playlist(artists, playlist_name, songs_per_artist)
        lines = [
            f'Successfully created playlist "{playlist_name}"!',
            '',
            f"Playlist URL: {result.playlist_url}",
            f"Added {result.tracks_added} tracks from {len(result.found_artists)} of "
            f"{len(result.requested_artists)} requested artists:",
            '',
        ]
        lines.extend(f"• {track.name} - {track.artist_name}" for track in result.tracks)
        return '\n'.join(lines)


def create_mcp_server(service: PlaylistService) -> FastMCP:
    """Build the FastMCP server exposing the Spotify tools."""
    tools = SpotifyTools(service)
    app = FastMCP(SERVER_NAME)

    @app.tool(name='authenticate_spotify', description='Get Spotify authentication URL')
    def authenticate_spotify() -> str:
        return tools.authenticate_spotify()

    @app.tool(name='complete_authorization',
              description='Exchange the code returned to the redirect URI for Spotify tokens')
    def complete_authorization(
        code: Annotated[str, Field(description='Authorization code from the redirect URI')],
        state: Annotated[Optional[str], Field(description='State value from the redirect URI')] = None,
    ) -> str:
        return tools.complete_authorization(code, state)

    @app.tool(name='set_access_token', description='Set the Spotify access token after authentication')
    def set_access_token(
        access_token: Annotated[str, Field(description='Spotify access token')],
        refresh_token: Annotated[Optional[str], Field(description='Spotify refresh token')] = None,
    ) -> str:
        return tools.set_access_token(access_token, refresh_token)

    @app.tool(name='search_artist', description='Search for an artist on Spotify')
    def search_artist(
        artist_name: Annotated[str, Field(description='Name of the artist to search for')],
    ) -> str:
        return tools.search_artist(artist_name)

    @app.tool(name='get_artist_top_tracks', description='Get top tracks for an artist')
    def get_artist_top_tracks(
        artist_id: Annotated[str, Field(description='Spotify artist ID')],
        country: Annotated[Optional[str], Field(description='Country code (default: configured market)')] = None,
    ) -> str:
        return tools.get_artist_top_tracks(artist_id, country)

    @app.tool(name='create_mixed_playlist',
              description='Create a playlist mixing songs from multiple artists')
    def create_mixed_playlist(
        artists: Annotated[List[str], Field(description='Array of artist names', min_length=1)],
        playlist_name: Annotated[str, Field(description='Name for the new playlist', min_length=1)],
        songs_per_artist: Annotated[
            Optional[Annotated[int, Field(ge=MIN_SONGS_PER_ARTIST, le=MAX_SONGS_PER_ARTIST)]],
            Field(description='Number of songs per artist (default: configured, 5)'),
        ] = None,
    ) -> str:
        return tools.create_mixed_playlist(artists, playlist_name, songs_per_artist)

    return app
