import json
import logging

from playmix.crosscutting.logging import (
    SecretMasker, StructuredFormatter, CorrelationContext,
    setup_logging, get_logger, log_with_fields,
    log_mix_start, log_artist_skipped, log_mix_complete, log_error,
    artist_var, request_id_var
)


class TestSecretMasker:
    """Tests for secret masking functionality."""

    def setup_method(self):
        """Set up test fixtures."""
        self.masker = SecretMasker()

    def test_mask_api_token(self):
        text = "API token: abc123def456ghi789"
        masked = self.masker.mask_secrets(text)
        assert masked == "API token: abc1**********i789"

    def test_mask_client_secret(self):
        text = "client_secret: my_super_secret_key_12345"
        masked = self.masker.mask_secrets(text)
        assert masked == "client_secret: my_s*****************2345"
        assert "my_super_secret_key_12345" not in masked

    def test_mask_oauth_code(self):
        text = "code: AQABC123DEF456GHI789"
        masked = self.masker.mask_secrets(text)
        assert masked == "code: AQAB************I789"

    def test_plain_text_is_untouched(self):
        text = "Found artist: Burna Boy (searched for: burna boy)"
        assert self.masker.mask_secrets(text) == text

    def test_mask_dict_masks_by_key(self):
        data = {
            'access_token': 'secret_token_12345',
            'user_info': {'name': 'John Doe', 'refresh_token': 'short'},
            'artists': ['Wizkid', 'Davido'],
            'count': 3,
        }

        masked = self.masker.mask_dict(data)

        assert masked['access_token'] == 'secr**********2345'
        assert masked['user_info']['name'] == 'John Doe'
        assert masked['user_info']['refresh_token'] == '*****'
        assert masked['artists'] == ['Wizkid', 'Davido']
        assert masked['count'] == 3


class TestStructuredFormatter:
    """Tests for JSON log formatting."""

    def _record(self, message, **extra):
        logger = logging.getLogger('playmix.test')
        record = logger.makeRecord('playmix.test', logging.INFO, __file__, 10, message, (), None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_formats_json_with_basic_fields(self):
        entry = json.loads(StructuredFormatter().format(self._record('Mix started')))

        assert entry['level'] == 'INFO'
        assert entry['logger'] == 'playmix.test'
        assert entry['message'] == 'Mix started'
        assert entry['ts'].endswith('Z')

    def test_includes_correlation_fields(self):
        with CorrelationContext(request_id='req-1', artist='Wizkid', stage='collect'):
            entry = json.loads(StructuredFormatter().format(self._record('Adding tracks')))

        assert entry['requestId'] == 'req-1'
        assert entry['artist'] == 'Wizkid'
        assert entry['stage'] == 'collect'
        assert 'playlistId' not in entry

    def test_masks_message_and_fields(self):
        record = self._record('token: abcdefghijklmnop', fields={'client_secret': 'abcdefghijklmnopqrstuv'})

        entry = json.loads(StructuredFormatter().format(record))

        assert 'abcdefghijklmnop' not in entry['message']
        assert entry['fields']['client_secret'] == 'abcd' + '*' * 14 + 'stuv'


class TestCorrelationContext:
    """Tests for correlation context."""

    def test_restores_previous_values(self):
        with CorrelationContext(request_id='outer'):
            with CorrelationContext(request_id='inner', artist='Davido'):
                assert request_id_var.get() == 'inner'
                assert artist_var.get() == 'Davido'
            assert request_id_var.get() == 'outer'
            assert artist_var.get() is None
        assert request_id_var.get() is None


class TestLoggingSetup:
    """Tests for logger configuration and helpers."""

    def test_setup_logging_writes_json_to_file(self, tmp_path):
        log_file = tmp_path / 'playmix.log'
        logger = setup_logging('DEBUG', str(log_file))

        get_logger('playmix.mixer').info('Creating playlist with 5 tracks')
        for handler in logger.handlers:
            handler.flush()

        entries = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        assert entries[-1]['message'] == 'Creating playlist with 5 tracks'
        assert entries[-1]['logger'] == 'playmix.mixer'

    def test_log_with_fields_attaches_fields(self, caplog):
        logger = get_logger('playmix.test')

        with caplog.at_level(logging.INFO, logger='playmix'):
            log_with_fields(logger, 'INFO', 'Hello', {'a': 1}, b=2)

        assert caplog.records[-1].fields == {'a': 1, 'b': 2}

    def test_mix_helpers(self, caplog):
        logger = get_logger('playmix.test')

        with caplog.at_level(logging.INFO, logger='playmix'):
            log_mix_start(logger, ['Wizkid'], 'Mix', 5)
            log_artist_skipped(logger, 'Nobody', 'not found')
            log_mix_complete(logger, 'pl_1', 5, ['Wizkid'])

        messages = [record.getMessage() for record in caplog.records]
        assert messages == ['Mix started', "Skipping artist 'Nobody': not found", 'Mix completed']
        assert caplog.records[1].levelno == logging.WARNING
        assert caplog.records[2].fields['track_count'] == 5

    def test_log_error_includes_error_details(self, caplog):
        logger = get_logger('playmix.test')

        try:
            raise RuntimeError('boom')
        except RuntimeError as e:
            with caplog.at_level(logging.ERROR, logger='playmix'):
                log_error(logger, 'Request failed', e, path='/create-playlist')

        record = caplog.records[-1]
        assert record.fields['error_type'] == 'RuntimeError'
        assert record.fields['path'] == '/create-playlist'
        assert record.exc_info is not None
