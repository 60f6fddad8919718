import datetime
import os
import sys
import tempfile
from unittest.mock import patch

import pytest

from metno.freshness import utcnow
from .test_utils import make_forecast_json, make_response

# Import the CLI module
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from cli.metno_forecast import main  # noqa: E402

AGENT = 'metno-forecast-tests/1.0 github.com/example'
T0 = datetime.datetime(2026, 10, 18, 9, 45, tzinfo=datetime.UTC)


def ok_response(*args, **kwargs):
    return make_response(200, make_forecast_json(), utcnow() + datetime.timedelta(hours=1), T0)


class TestCLI:
    @patch('metno.conditional_fetcher.requests.get')
    @patch('builtins.print')
    def test_prints_table(self, mock_print, mock_requests):
        mock_requests.side_effect = ok_response

        with tempfile.TemporaryDirectory() as tmpdir:
            test_args = ['prog', '-u', AGENT, '--lat', '59.9428', '--lon', '10.7207',
                         '--altitude', '100', '-d', tmpdir]
            with patch('sys.argv', test_args):
                main()

            assert len(os.listdir(tmpdir)) == 2

        assert mock_print.call_count == 1
        table = mock_print.call_args_list[0][0][0]
        assert '59.9428, 10.7207' in table
        assert mock_requests.call_args[1]['headers']['User-Agent'] == AGENT

    @patch('metno.conditional_fetcher.requests.get')
    @patch('appdirs.user_cache_dir')
    @patch('builtins.print')
    def test_default_cache_dir(self, mock_print, mock_cache_dir, mock_requests):
        mock_requests.side_effect = ok_response

        with tempfile.TemporaryDirectory() as tmpdir:
            mock_cache_dir.return_value = tmpdir
            test_args = ['prog', '-u', AGENT, '--lat', '59.9428', '--lon', '10.7207']
            with patch('sys.argv', test_args):
                main()

            mock_cache_dir.assert_called_once_with('metno_forecast')
            assert 'metno-locationforecast-59.9428-10.7207-0.json' in os.listdir(tmpdir)

    @patch('metno.conditional_fetcher.requests.get')
    @patch('appdirs.user_cache_dir')
    @patch('builtins.print')
    def test_no_cache(self, mock_print, mock_cache_dir, mock_requests):
        mock_requests.side_effect = ok_response

        test_args = ['prog', '-u', AGENT, '--lat', '59.9428', '--lon', '10.7207', '--no-cache']
        with patch('sys.argv', test_args):
            main()

        assert not mock_cache_dir.called
        assert mock_print.call_count == 1

    @patch('metno.conditional_fetcher.requests.get')
    @patch('builtins.print')
    def test_hours_option(self, mock_print, mock_requests):
        mock_requests.side_effect = lambda *a, **kw: make_response(
            200, make_forecast_json(steps=10), utcnow() + datetime.timedelta(hours=1), T0)

        test_args = ['prog', '-u', AGENT, '--lat', '59.9428', '--lon', '10.7207', '--no-cache', '-n', '5']
        with patch('sys.argv', test_args):
            main()

        table = mock_print.call_args_list[0][0][0]
        assert len([line for line in table.split('\n') if line.startswith('2026-')]) == 5

    @patch.dict(os.environ, {'METNO_USER_AGENT': AGENT})
    @patch('metno.conditional_fetcher.requests.get')
    @patch('builtins.print')
    def test_user_agent_from_environment(self, mock_print, mock_requests):
        mock_requests.side_effect = ok_response

        test_args = ['prog', '--lat', '59.9428', '--lon', '10.7207', '--no-cache']
        with patch('sys.argv', test_args):
            main()

        assert mock_requests.call_args[1]['headers']['User-Agent'] == AGENT

    def test_missing_user_agent(self):
        test_args = ['prog', '--lat', '59.9428', '--lon', '10.7207']
        with patch.dict(os.environ, {}, clear=True):
            with patch('sys.argv', test_args):
                with pytest.raises(SystemExit):
                    main()

    def test_missing_location(self):
        test_args = ['prog', '-u', AGENT, '--lat', '59.9428']
        with patch('sys.argv', test_args):
            with pytest.raises(SystemExit):
                main()

    @patch('metno.conditional_fetcher.requests.get')
    def test_upstream_error_exits(self, mock_requests, capsys):
        mock_requests.return_value = make_response(500, None)

        test_args = ['prog', '-u', AGENT, '--lat', '59.9428', '--lon', '10.7207', '--no-cache']
        with patch('sys.argv', test_args):
            with pytest.raises(SystemExit) as excinfo:
                main()

        assert excinfo.value.code == 1
        assert 'UpstreamStatusError' in capsys.readouterr().err
