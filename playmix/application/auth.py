import logging
import secrets
from typing import Callable, Optional

from playmix.crosscutting.config import Settings
from playmix.domain.entities import AuthSession
from playmix.domain.errors import AuthError
from playmix.domain.ports import OAuthProvider

logger = logging.getLogger(__name__)


class Authenticator:
    """Drives the authorization-code flow and owns every mutation of the session."""

    def __init__(self, session: AuthSession, settings: Settings,
                 oauth_factory: Callable[[Settings], OAuthProvider]):
        """Initialize authenticator.

        Args:
            session: The process-wide session this authenticator mutates
            settings: Application settings holding the client credentials
            oauth_factory: Builds the OAuth provider on first use
        """
        self.session = session
        self.settings = settings
        self._oauth_factory = oauth_factory
        self._oauth: Optional[OAuthProvider] = None

    def _provider(self) -> OAuthProvider:
        if self._oauth is None:
            # Raises ConfigError when credentials are missing
            self.settings.get_spotify_client_config()
            self._oauth = self._oauth_factory(self.settings)
        return self._oauth

    def get_authorization_url(self) -> str:
        """Return the URL the user visits to grant access.

        Raises:
            ConfigError: client credentials are not configured
        """
        provider = self._provider()
        state = secrets.token_urlsafe(16)
        self.session.pending_state = state
        url = provider.authorize_url(self.settings.get_spotify_scopes(), state)
        logger.info("Authorization URL generated")
        return url

    def complete_authorization(self, code: str, state: Optional[str] = None,
                               require_state: bool = False) -> AuthSession:
        """Exchange an authorization code for a token pair and mark the session authenticated.

        Args:
            code: Authorization code from the redirect
            state: State value from the redirect, if any
            require_state: Reject a missing state once an authorization URL
                has been issued (redirect callbacks); a pasted code may omit it

        Raises:
            ConfigError: client credentials are not configured
            AuthError: the code is empty, rejected, or the state does not match
        """
        if not code:
            raise AuthError("Missing authorization code")
        expected = self.session.pending_state
        if expected and (state or require_state) and state != expected:
            raise AuthError("OAuth state mismatch")

        tokens = self._provider().exchange_code(code)

        missing = self.settings.get_missing_spotify_scopes(tokens.get('scope') or '')
        if tokens.get('scope') and missing:
            logger.warning(f"Granted token is missing scopes: {', '.join(missing)}")

        self.session.authenticate(tokens['access_token'], tokens.get('refresh_token'))
        logger.info("Spotify authorization completed")
        return self.session

    def set_tokens(self, access_token: str, refresh_token: Optional[str] = None) -> AuthSession:
        """Authenticate the session with a token obtained out of band."""
        if not access_token:
            raise AuthError("Access token must not be empty")
        self.session.authenticate(access_token, refresh_token)
        logger.info("Spotify access token set")
        return self.session
