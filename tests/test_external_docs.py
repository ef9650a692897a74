"""
Unit tests for openapi_partitioner.external_docs module.
"""

import unittest
from unittest import mock

import requests

from openapi_partitioner.external_docs import ACCEPT_HEADER, fetch_external_docs


def make_response(status_code, text=''):
    response = mock.Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.text = text
    return response


class TestFetchExternalDocs(unittest.TestCase):
    """Test cases for fetching externalDocs content."""

    @mock.patch('openapi_partitioner.external_docs.requests.get')
    def test_returns_text_on_success(self, mock_get):
        mock_get.return_value = make_response(200, '# Guide\n')

        result = fetch_external_docs('https://docs.example.com/guide.md', timeout=5)

        self.assertEqual(result, '# Guide\n')
        mock_get.assert_called_once_with(
            'https://docs.example.com/guide.md',
            headers={'Accept': ACCEPT_HEADER},
            timeout=5
        )

    @mock.patch('openapi_partitioner.external_docs.requests.get')
    def test_non_success_status_returns_none(self, mock_get):
        mock_get.return_value = make_response(404)

        with self.assertLogs('openapi_partitioner.external_docs', level='WARNING') as logs:
            result = fetch_external_docs('https://docs.example.com/missing.md')

        self.assertIsNone(result)
        self.assertIn('404', logs.output[0])

    @mock.patch('openapi_partitioner.external_docs.requests.get')
    def test_network_error_returns_none(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError('refused')

        with self.assertLogs('openapi_partitioner.external_docs', level='WARNING'):
            result = fetch_external_docs('https://docs.example.com/guide.md')

        self.assertIsNone(result)

    def test_uses_given_session(self):
        session = mock.Mock()
        session.get.return_value = make_response(200, 'text')

        result = fetch_external_docs('https://docs.example.com/guide.md', session=session)

        self.assertEqual(result, 'text')
        session.get.assert_called_once()


if __name__ == '__main__':
    unittest.main()
