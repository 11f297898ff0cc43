import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Dict, Any, Optional, List
from contextvars import ContextVar

# Context variables for correlation
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
artist_var: ContextVar[Optional[str]] = ContextVar('artist', default=None)
playlist_id_var: ContextVar[Optional[str]] = ContextVar('playlist_id', default=None)
stage_var: ContextVar[Optional[str]] = ContextVar('stage', default=None)


class SecretMasker:
    """Masks sensitive information in log messages."""

    def __init__(self):
        """Initialize secret masker with patterns."""
        self.patterns = [
            # API tokens and keys
            r'(?i)(token|key|secret|password|auth)[\s]*[:=][\s]*["\']?([a-zA-Z0-9\-_\.]{10,})["\']?',
            # Spotify access tokens
            r'(?i)(spotify_access_token|access_token|refresh_token)[\s]*[:=][\s]*["\']?([a-zA-Z0-9\-_\.]{50,})["\']?',
            # Client secrets
            r'(?i)(client_secret)[\s]*[:=][\s]*["\']?([a-zA-Z0-9\-_\.]{20,})["\']?',
            # Authorization headers
            r'(?i)(authorization|bearer)[\s]*[:=][\s]*["\']?([a-zA-Z0-9\-_\.]{50,})["\']?',
            # OAuth codes
            r'(?i)(code|authorization_code)[\s]*[:=][\s]*["\']?([a-zA-Z0-9\-_\.]{20,})["\']?',
        ]

        self.compiled_patterns = [re.compile(pattern) for pattern in self.patterns]

    def mask_secrets(self, text: str) -> str:
        """Mask sensitive information in text."""
        if not text:
            return text

        masked_text = text

        for pattern in self.compiled_patterns:
            def replace_match(match):
                prefix = match.group(1)
                secret = match.group(2)
                # Keep first 4 and last 4 characters
                if len(secret) > 8:
                    masked_secret = secret[:4] + '*' * (len(secret) - 8) + secret[-4:]
                else:
                    masked_secret = '*' * len(secret)
                return f"{prefix}: {masked_secret}"

            masked_text = pattern.sub(replace_match, masked_text)

        return masked_text

    def mask_value(self, key: str, value: str) -> str:
        """Mask a value whose key names a secret, regardless of its content."""
        if re.search(r'(?i)(token|secret|password|code)', key) and value:
            if len(value) > 8:
                return value[:4] + '*' * (len(value) - 8) + value[-4:]
            return '*' * len(value)
        return self.mask_secrets(value)

    def mask_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Mask sensitive information in dictionary."""
        if not data:
            return data

        masked_data = {}

        for key, value in data.items():
            if isinstance(value, str):
                masked_data[key] = self.mask_value(key, value)
            elif isinstance(value, dict):
                masked_data[key] = self.mask_dict(value)
            elif isinstance(value, list):
                masked_data[key] = [self.mask_dict(item) if isinstance(item, dict)
                                    else self.mask_secrets(item) if isinstance(item, str)
                                    else item for item in value]
            else:
                masked_data[key] = value

        return masked_data


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def __init__(self):
        """Initialize formatter."""
        super().__init__()
        self.masker = SecretMasker()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            'ts': datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%fZ'),
            'level': record.levelname,
            'logger': record.name,
            'message': self.mask_secrets(record.getMessage()),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        request_id = request_id_var.get()
        artist = artist_var.get()
        playlist_id = playlist_id_var.get()
        stage = stage_var.get()

        if request_id:
            log_entry['requestId'] = request_id
        if artist:
            log_entry['artist'] = artist
        if playlist_id:
            log_entry['playlistId'] = playlist_id
        if stage:
            log_entry['stage'] = stage

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        if hasattr(record, 'fields') and record.fields:
            log_entry['fields'] = self.masker.mask_dict(record.fields)

        return json.dumps(log_entry, ensure_ascii=False, default=str)

    def mask_secrets(self, text: str) -> str:
        """Mask secrets in text."""
        return self.masker.mask_secrets(text)


class CorrelationContext:
    """Context manager for correlation data."""

    _VARS = {
        'request_id': request_id_var,
        'artist': artist_var,
        'playlist_id': playlist_id_var,
        'stage': stage_var,
    }

    def __init__(self, request_id: Optional[str] = None,
                 artist: Optional[str] = None,
                 playlist_id: Optional[str] = None,
                 stage: Optional[str] = None):
        """Initialize correlation context."""
        self.values = {
            'request_id': request_id,
            'artist': artist,
            'playlist_id': playlist_id,
            'stage': stage,
        }
        self._tokens = []

    def __enter__(self):
        """Set correlation context."""
        for name, value in self.values.items():
            if value is not None:
                self._tokens.append((self._VARS[name], self._VARS[name].set(value)))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Restore correlation context."""
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens = []


def setup_logging(level: str = 'INFO',
                  log_file: Optional[str] = None) -> logging.Logger:
    """Setup structured logging on the ``playmix`` logger.

    Console output goes to stderr; stdout carries the MCP stdio transport.
    """
    logger = logging.getLogger('playmix')
    logger.setLevel(getattr(logging, level.upper()))
    logger.propagate = False

    logger.handlers.clear()

    formatter = StructuredFormatter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = 'playmix') -> logging.Logger:
    """Get logger with structured formatting."""
    return logging.getLogger(name)


def log_with_fields(logger: logging.Logger, level: str, message: str,
                    fields: Optional[Dict[str, Any]] = None, exc_info: bool = False,
                    **kwargs):
    """Log message with additional fields."""
    merged = dict(fields or {})
    merged.update(kwargs)
    logger.log(
        getattr(logging, level.upper()), message,
        extra={'fields': merged} if merged else None,
        exc_info=exc_info,
        stacklevel=2,
    )


# Convenience functions for common logging patterns
def log_mix_start(logger: logging.Logger, artists: List[str], playlist_name: str,
                  songs_per_artist: int, **kwargs):
    """Log mix request start."""
    with CorrelationContext(stage='mix_start'):
        log_with_fields(logger, 'INFO', 'Mix started', {
            'requested_artists': artists,
            'playlist_name': playlist_name,
            'songs_per_artist': songs_per_artist,
            **kwargs
        })


def log_artist_skipped(logger: logging.Logger, artist: str, reason: str, **kwargs):
    """Log an artist dropped from the mix."""
    with CorrelationContext(artist=artist, stage='artist_skipped'):
        log_with_fields(logger, 'WARNING', f"Skipping artist '{artist}': {reason}", {
            'reason': reason,
            **kwargs
        })


def log_mix_complete(logger: logging.Logger, playlist_id: str,
                     track_count: int, found_artists: List[str], **kwargs):
    """Log mix completion."""
    with CorrelationContext(playlist_id=playlist_id, stage='mix_complete'):
        log_with_fields(logger, 'INFO', 'Mix completed', {
            'track_count': track_count,
            'found_artists': found_artists,
            **kwargs
        })


def log_error(logger: logging.Logger, message: str, error: Exception, **kwargs):
    """Log error with exception details."""
    log_with_fields(logger, 'ERROR', message, {
        'error_type': type(error).__name__,
        'error_message': str(error),
        **kwargs
    }, exc_info=True)
