import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, request, jsonify

from playmix.application.service import PlaylistService, build_service
from playmix.crosscutting.config import (
    MAX_SONGS_PER_ARTIST, MIN_SONGS_PER_ARTIST, ConfigError, Settings, get_settings
)
from playmix.crosscutting.logging import log_error, request_id_var
from playmix.domain.errors import (
    AuthError, NoTracksFound, NotFound, PlaymixError, RemoteError, Unauthenticated
)


# Status code and machine-readable code for each failure surfaced to clients
ERROR_RESPONSES = {
    AuthError: (400, 'auth_failed'),
    Unauthenticated: (401, 'not_authenticated'),
    NotFound: (404, 'not_found'),
    NoTracksFound: (400, 'no_tracks_found'),
    RemoteError: (502, 'remote_error'),
}


class RequestValidationError(ValueError):
    """Request body failed validation."""


class HTTPServer:
    """HTTP server exposing authentication, artist search and playlist mixing."""

    def __init__(self, service: Optional[PlaylistService] = None,
                 settings: Optional[Settings] = None,
                 host: Optional[str] = None, port: Optional[int] = None,
                 debug: bool = False):
        """Initialize HTTP server."""
        self.settings = settings or get_settings()
        self.service = service or build_service(self.settings)
        self.host = host or self.settings.http_host
        self.port = port or self.settings.http_port
        self.debug = debug
        self.app = Flask(__name__)
        self.logger = logging.getLogger(__name__)

        self.version = "0.1.0"

        self._setup_routes()
        self._setup_error_handlers()

    def _setup_routes(self) -> None:
        """Setup Flask routes."""

        @self.app.before_request
        def assign_request_id():
            request_id_var.set(request.headers.get('X-Request-ID') or uuid.uuid4().hex)

        @self.app.teardown_request
        def clear_request_id(exc):
            request_id_var.set(None)

        @self.app.route('/', methods=['GET'])
        def root():
            """Root endpoint with basic info."""
            return jsonify({
                'service': 'playmix HTTP Interface',
                'version': self.version,
                'endpoints': {
                    'auth': '/auth',
                    'oauth_callback': '/callback',
                    'search_artist': '/search-artist',
                    'create_playlist': '/create-playlist',
                    'health': '/health',
                }
            }), 200

        @self.app.route('/health', methods=['GET'])
        def health_check():
            """Health check endpoint."""
            return jsonify(self.service.status()), 200

        @self.app.route('/auth', methods=['GET'])
        def spotify_auth():
            """Return the Spotify authorization URL."""
            auth_url = self.service.authorization_url()
            return jsonify({
                'auth_url': auth_url,
                'instructions': 'Copy the auth_url and visit it in your browser'
            }), 200

        @self.app.route('/callback', methods=['GET'])
        def oauth_callback():
            """OAuth callback endpoint for Spotify."""
            code = request.args.get('code')
            error = request.args.get('error')

            if error:
                self.logger.error(f"OAuth error: {error}")
                return jsonify({
                    'error': 'OAuth authorization failed',
                    'details': error
                }), 400

            if not code:
                return jsonify({
                    'error': 'Missing authorization code'
                }), 400

            self.service.complete_authorization(code, request.args.get('state'), require_state=True)
            return 'Authentication successful! You can close this window.', 200

        @self.app.route('/search-artist', methods=['POST'])
        def search_artist():
            """Search artists by name."""
            body = self._json_body()
            artist_name = body.get('artist_name')
            if not isinstance(artist_name, str) or not artist_name.strip():
                raise RequestValidationError("artist_name must be a non-empty string")

            artists = self.service.search_artists(artist_name)
            return jsonify({'artists': [artist.to_dict() for artist in artists]}), 200

        @self.app.route('/create-playlist', methods=['POST'])
        def create_playlist():
            """Create a playlist mixing top tracks of several artists."""
            artists, playlist_name, songs_per_artist = self._parse_mix_request(self._json_body())
            result = self.service.create_mixed_playlist(artists, playlist_name, songs_per_artist)
            return jsonify(result.to_dict()), 200

    def _setup_error_handlers(self) -> None:
        """Translate failures into structured JSON responses."""

        @self.app.errorhandler(RequestValidationError)
        def handle_validation_error(e):
            return jsonify({'error': str(e), 'code': 'invalid_request'}), 400

        @self.app.errorhandler(ConfigError)
        def handle_config_error(e):
            self.logger.error(f"Configuration error: {e}")
            return jsonify({
                'error': 'Spotify Client ID not configured',
                'code': 'config_error',
                'details': str(e),
                'help': 'Make sure your .env file has SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET'
            }), 500

        @self.app.errorhandler(PlaymixError)
        def handle_playmix_error(e):
            status, code = self._error_response(e)
            if status >= 500:
                log_error(self.logger, 'Request failed', e, path=request.path)
            else:
                self.logger.warning(f"Request to {request.path} failed: {e}")
            return jsonify({'error': str(e), 'code': code}), status

    @staticmethod
    def _error_response(error: PlaymixError) -> Tuple[int, str]:
        for error_type, response in ERROR_RESPONSES.items():
            if isinstance(error, error_type):
                return response
        return 500, 'internal_error'

    @staticmethod
    def _json_body() -> Dict[str, Any]:
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            raise RequestValidationError("Request body must be a JSON object")
        return body

    def _parse_mix_request(self, body: Dict[str, Any]) -> Tuple[List[str], str, int]:
        artists = body.get('artists')
        playlist_name = body.get('playlist_name')
        songs_per_artist = body.get('songs_per_artist', self.settings.default_songs_per_artist)

        if (not isinstance(artists, list) or not artists
                or not all(isinstance(a, str) and a.strip() for a in artists)):
            raise RequestValidationError("artists must be a non-empty list of artist names")
        if not isinstance(playlist_name, str) or not playlist_name.strip():
            raise RequestValidationError("playlist_name must be a non-empty string")
        if (isinstance(songs_per_artist, bool) or not isinstance(songs_per_artist, int)
                or not MIN_SONGS_PER_ARTIST <= songs_per_artist <= MAX_SONGS_PER_ARTIST):
            raise RequestValidationError(
                f"songs_per_artist must be an integer between {MIN_SONGS_PER_ARTIST} and {MAX_SONGS_PER_ARTIST}"
            )

        return [a.strip() for a in artists], playlist_name.strip(), songs_per_artist

    def run(self) -> None:
        """Run the HTTP server."""
        self.logger.info(f"Starting playmix HTTP server on {self.host}:{self.port}")
        self.logger.info(f"Visit http://{self.host}:{self.port}/auth to authenticate")
        # One request at a time: the auth session is shared without a lock
        self.app.run(
            host=self.host,
            port=self.port,
            debug=self.debug,
            threaded=False
        )


def create_app(service: Optional[PlaylistService] = None,
               settings: Optional[Settings] = None) -> Flask:
    """Create Flask app."""
    server = HTTPServer(service=service, settings=settings)
    return server.app
