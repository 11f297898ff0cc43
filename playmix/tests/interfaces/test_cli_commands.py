import json
from unittest.mock import patch

import pytest

from playmix.interfaces.cli import CLI, main


class TestCLI:
    """Tests for the command line entry point."""

    def setup_method(self):
        self.cli = CLI()

    def test_parser_prog_and_commands(self):
        assert self.cli.parser.prog == 'playmix'

        args = self.cli.parser.parse_args(['http', '--port', '4000', '--debug'])

        assert args.command == 'http'
        assert args.port == 4000
        assert args.debug is True

    def test_no_command_prints_help_and_fails(self, capsys):
        assert self.cli.run([]) == 1
        assert 'usage: playmix' in capsys.readouterr().out

    def test_config_prints_summary_without_secrets(self, tmp_path, capsys):
        env_file = tmp_path / '.env'
        env_file.write_text('SPOTIFY_CLIENT_ID=client-id-123\nSPOTIFY_CLIENT_SECRET=very-secret-value\n')

        exit_code = main(['--env-file', str(env_file), 'config'])

        out = capsys.readouterr().out
        summary = json.loads(out)
        assert exit_code == 0
        assert summary['validation']['spotify_client_id'] is True
        assert summary['validation']['spotify_client_secret'] is True
        assert 'very-secret-value' not in out

    def test_invalid_setting_reports_config_error(self, tmp_path, capsys):
        env_file = tmp_path / '.env'
        env_file.write_text('PLAYMIX_HTTP_PORT=not-a-port\n')

        exit_code = main(['--env-file', str(env_file), 'http'])

        assert exit_code == 2
        assert 'PLAYMIX_HTTP_PORT' in capsys.readouterr().err

    def test_http_command_runs_server(self, tmp_path):
        with patch('playmix.interfaces.http.HTTPServer.run') as run:
            exit_code = main(['--env-file', str(tmp_path / '.env'), 'http', '--port', '4001'])

        assert exit_code == 0
        run.assert_called_once_with()

    def test_mcp_command_runs_stdio_server(self, tmp_path):
        with patch('mcp.server.fastmcp.FastMCP.run') as run:
            exit_code = main(['--env-file', str(tmp_path / '.env'), 'mcp'])

        assert exit_code == 0
        run.assert_called_once_with()

    def test_unknown_command_exits(self):
        with pytest.raises(SystemExit):
            self.cli.run(['transfer'])
