import logging
from typing import Any, Dict, Optional, Sequence
from urllib.parse import urlencode

import requests

from playmix.crosscutting.config import SpotifyClientConfig
from playmix.domain.errors import AuthError, RemoteError
from playmix.domain.ports import OAuthProvider

logger = logging.getLogger(__name__)

AUTHORIZE_URL = 'https://accounts.spotify.com/authorize'
TOKEN_URL = 'https://accounts.spotify.com/api/token'


class SpotifyOAuthClient(OAuthProvider):
    """Spotify OAuth2 authorization-code flow over plain HTTP."""

    def __init__(self, config: SpotifyClientConfig, timeout: int = 15,
                 session: Optional[requests.Session] = None):
        """Initialize OAuth client.

        Args:
            config: Client id, secret and redirect URI
            timeout: Timeout in seconds for the token request
            session: Optional requests session (tests inject a fake)
        """
        self.config = config
        self.timeout = timeout
        self._http = session or requests.Session()

    def authorize_url(self, scopes: Sequence[str], state: str) -> str:
        """Build the Spotify authorization URL."""
        params = {
            'client_id': self.config.client_id,
            'response_type': 'code',
            'redirect_uri': self.config.redirect_uri,
            'scope': ' '.join(scopes),
            'state': state,
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    def exchange_code(self, code: str) -> Dict[str, Any]:
        """Exchange authorization code for access and refresh tokens.

        Raises:
            AuthError: the token endpoint rejected the code
            RemoteError: the token endpoint could not be reached or answered unexpectedly
        """
        data = {
            'grant_type': 'authorization_code',
            'code': code,
            'redirect_uri': self.config.redirect_uri,
            'client_id': self.config.client_id,
            'client_secret': self.config.client_secret,
        }
        headers = {'Content-Type': 'application/x-www-form-urlencoded'}

        try:
            response = self._http.post(TOKEN_URL, data=data, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise RemoteError(f"Token exchange request failed: {e}")

        if response.status_code in (400, 401):
            logger.error(f"Token exchange rejected: {response.status_code} - {response.text}")
            raise AuthError(f"Authorization code rejected ({response.status_code})")
        if response.status_code != 200:
            raise RemoteError(f"Token exchange failed: {response.status_code}", status=response.status_code)

        try:
            tokens = response.json()
        except ValueError as e:
            raise RemoteError(f"Token endpoint returned invalid JSON: {e}")

        if not tokens.get('access_token'):
            raise AuthError("Token response did not contain an access token")

        return {
            'access_token': tokens['access_token'],
            'refresh_token': tokens.get('refresh_token'),
            'expires_in': tokens.get('expires_in'),
            'token_type': tokens.get('token_type', 'Bearer'),
            'scope': tokens.get('scope', ''),
        }
