"""
Tests for environment configuration.
"""

import pytest

from ghproxy.config import CHUNK_SIZE, ProxyConfig


def test_defaults():
    config = ProxyConfig.from_env({})
    assert config.token is None
    assert config.host == '127.0.0.1'
    assert config.port == 8000
    assert config.chunk_size == CHUNK_SIZE
    assert config.timeout == (30.0, 600.0)
    assert config.allowed_hosts == ()
    assert config.bound_url == 'http://127.0.0.1:8000'


def test_from_env():
    config = ProxyConfig.from_env({
        'GITHUB_TOKEN': 'abc',
        'HOST': '0.0.0.0',
        'PORT': '9000',
        'CHUNK_SIZE': '4096',
        'CONNECT_TIMEOUT': '5',
        'READ_TIMEOUT': '120.5',
        'ALLOWED_HOSTS': ' GHE.example.com , ,raw.ghe.example.com',
    })
    assert config.token == 'abc'
    assert config.port == 9000
    assert config.chunk_size == 4096
    assert config.timeout == (5.0, 120.5)
    assert config.allowed_hosts == ('ghe.example.com', 'raw.ghe.example.com')


def test_empty_token_is_none():
    assert ProxyConfig.from_env({'GITHUB_TOKEN': ''}).token is None


def test_invalid_number():
    with pytest.raises(ValueError):
        ProxyConfig.from_env({'PORT': 'eighty'})


def test_frozen():
    config = ProxyConfig()
    with pytest.raises(AttributeError):
        config.token = 'x'
