"""
Tests for Location rewriting and proxy base URL derivation.
"""

from urllib.parse import parse_qs, urlsplit

import pytest

from ghproxy.allowlist import DomainAllowlist
from ghproxy.redirects import proxy_base_url, rewrite_location

BASE = 'https://mirror.example'


@pytest.fixture
def allowlist():
    return DomainAllowlist()


class TestRewriteLocation:

    def test_github_location_rewritten(self, allowlist):
        loc = 'https://objects.githubusercontent.com/github-production-release-asset/1?X-Amz-Signature=abc&response-content-disposition=attachment%3B%20filename%3Da.zip'
        rewritten = rewrite_location(loc, BASE, allowlist)
        assert rewritten.startswith(BASE + '/proxy?url=https%3A%2F%2Fobjects.githubusercontent.com')

    @pytest.mark.parametrize('loc', [
        'https://github.com/octo/hello',
        'https://codeload.github.com/octo/hello/zip/refs/heads/main',
        'https://raw.githubusercontent.com/octo/hello/main/a%20b.txt?token=x&y=1#frag',
    ])
    def test_round_trip(self, allowlist, loc):
        rewritten = rewrite_location(loc, BASE, allowlist)
        query = urlsplit(rewritten).query
        assert parse_qs(query)['url'] == [loc]

    @pytest.mark.parametrize('loc', [
        'https://example.com/elsewhere',
        '/relative/path',
        '',
        None,
    ])
    def test_unchanged(self, allowlist, loc):
        assert rewrite_location(loc, BASE, allowlist) == loc


class TestProxyBaseUrl:

    def test_forwarded_headers(self):
        headers = {'X-Forwarded-Proto': 'https', 'X-Forwarded-Host': 'mirror.example, lb.internal',
                   'Host': 'backend:8000'}
        assert proxy_base_url(headers, 'http://127.0.0.1:8000') == 'https://mirror.example'

    def test_forwarded_host_default_scheme(self):
        assert proxy_base_url({'X-Forwarded-Host': 'mirror.example'}, 'x') == 'http://mirror.example'

    def test_host_header(self):
        assert proxy_base_url({'Host': 'mirror.example:8080'}, 'x', 'https') == 'https://mirror.example:8080'

    def test_fallback(self):
        assert proxy_base_url({}, 'http://127.0.0.1:8000/') == 'http://127.0.0.1:8000'
