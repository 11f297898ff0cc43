import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from dotenv import dotenv_values


DEFAULT_REDIRECT_URI = 'http://127.0.0.1:3000/callback'
MIN_SONGS_PER_ARTIST = 1
MAX_SONGS_PER_ARTIST = 10


class ConfigError(Exception):
    """Configuration error."""
    pass


@dataclass(frozen=True)
class SpotifyClientConfig:
    """Credentials needed for the authorization-code flow."""

    client_id: str
    client_secret: str
    redirect_uri: str


class Settings:
    """Application settings read from the environment, layered over an optional .env file."""

    def __init__(self, env_file: Optional[str] = None,
                 environ: Optional[Mapping[str, str]] = None):
        """Initialize settings.

        Args:
            env_file: Path to a .env file; defaults to ``.env`` in the working directory
            environ: Mapping that overrides values from the .env file; defaults to os.environ
        """
        self.env_file = Path(env_file) if env_file else Path.cwd() / '.env'
        self._values = self._load(environ if environ is not None else os.environ)

    def _load(self, environ: Mapping[str, str]) -> Dict[str, str]:
        values: Dict[str, str] = {}
        if self.env_file.exists():
            try:
                values.update({k: v for k, v in dotenv_values(self.env_file).items() if v is not None})
            except OSError as e:
                raise ConfigError(f"Failed to load .env file {self.env_file}: {e}")
        values.update(environ)
        return values

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self._values.get(key)
        return value if value else default

    def _get_int(self, key: str, default: int) -> int:
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError:
            raise ConfigError(f"{key} must be an integer, got {raw!r}")

    @property
    def client_id(self) -> Optional[str]:
        return self.get('SPOTIFY_CLIENT_ID')

    @property
    def client_secret(self) -> Optional[str]:
        return self.get('SPOTIFY_CLIENT_SECRET')

    @property
    def redirect_uri(self) -> str:
        return self.get('SPOTIFY_REDIRECT_URI', DEFAULT_REDIRECT_URI)

    @property
    def market(self) -> str:
        return self.get('PLAYMIX_MARKET', 'US')

    @property
    def search_limit(self) -> int:
        return max(1, min(50, self._get_int('PLAYMIX_SEARCH_LIMIT', 5)))

    @property
    def default_songs_per_artist(self) -> int:
        value = self._get_int('PLAYMIX_DEFAULT_SONGS_PER_ARTIST', 5)
        return max(MIN_SONGS_PER_ARTIST, min(MAX_SONGS_PER_ARTIST, value))

    @property
    def requests_timeout(self) -> int:
        return self._get_int('PLAYMIX_REQUESTS_TIMEOUT', 15)

    @property
    def log_level(self) -> str:
        return self.get('PLAYMIX_LOG_LEVEL', 'INFO')

    @property
    def http_host(self) -> str:
        return self.get('PLAYMIX_HTTP_HOST', '127.0.0.1')

    @property
    def http_port(self) -> int:
        return self._get_int('PLAYMIX_HTTP_PORT', 3000)

    def get_spotify_scopes(self) -> List[str]:
        """Get minimal required Spotify scopes."""
        return [
            'playlist-modify-public',     # Create/modify public playlists
            'playlist-modify-private',    # Create/modify private playlists
            'user-read-private',          # Resolve the current user for playlist creation
        ]

    def get_spotify_scope_string(self) -> str:
        """Get Spotify scopes as space-separated string."""
        return ' '.join(self.get_spotify_scopes())

    def validate_spotify_scopes(self, scopes: str) -> bool:
        """Validate that provided scopes include all required ones."""
        provided_scopes = set(scopes.split())
        required_scopes = set(self.get_spotify_scopes())

        return required_scopes.issubset(provided_scopes)

    def get_missing_spotify_scopes(self, scopes: str) -> List[str]:
        """Get required Spotify scopes absent from the provided scope string, in canonical order."""
        provided_scopes = set(scopes.split())
        return [scope for scope in self.get_spotify_scopes() if scope not in provided_scopes]

    def has_client_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def get_spotify_client_config(self) -> SpotifyClientConfig:
        """Get Spotify client configuration.

        Raises:
            ConfigError: if the client id or secret is missing
        """
        if not self.client_id:
            raise ConfigError("SPOTIFY_CLIENT_ID not found in environment")
        if not self.client_secret:
            raise ConfigError("SPOTIFY_CLIENT_SECRET not found in environment")

        return SpotifyClientConfig(
            client_id=self.client_id,
            client_secret=self.client_secret,
            redirect_uri=self.redirect_uri,
        )

    def validate_configuration(self) -> Dict[str, bool]:
        """Report which required settings are present."""
        return {
            'spotify_client_id': bool(self.client_id),
            'spotify_client_secret': bool(self.client_secret),
            'spotify_redirect_uri': bool(self.get('SPOTIFY_REDIRECT_URI')),
        }

    def get_config_summary(self) -> Dict[str, Any]:
        """Get configuration summary (without sensitive data)."""
        return {
            'env_file': str(self.env_file),
            'env_file_exists': self.env_file.exists(),
            'validation': self.validate_configuration(),
            'redirect_uri': self.redirect_uri,
            'spotify_scopes': self.get_spotify_scopes(),
            'market': self.market,
            'search_limit': self.search_limit,
            'default_songs_per_artist': self.default_songs_per_artist,
            'requests_timeout': self.requests_timeout,
        }


# Global instance, created on first use
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def setup_config(env_file: Optional[str] = None,
                 environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Setup configuration with a custom .env file or environment mapping."""
    global _settings
    _settings = Settings(env_file, environ)
    return _settings
