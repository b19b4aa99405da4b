# -*- coding: utf-8 -*-
import os
from dataclasses import dataclass


# ----------------------
# Defaults
# ----------------------
HOST = '127.0.0.1'  # listen on loopback and let the web server reverse-proxy
PORT = 8000
CHUNK_SIZE = 1024 * 10  # streaming chunk size
CONNECT_TIMEOUT = 30
READ_TIMEOUT = 600


def _split_hosts(value):
    return tuple(h.strip().lower() for h in value.split(',') if h.strip())


@dataclass(frozen=True)
class ProxyConfig:
    """Process-wide settings, read once at startup and never mutated."""

    token: str = None
    host: str = HOST
    port: int = PORT
    chunk_size: int = CHUNK_SIZE
    connect_timeout: float = CONNECT_TIMEOUT
    read_timeout: float = READ_TIMEOUT
    allowed_hosts: tuple = ()

    @classmethod
    def from_env(cls, environ=None):
        env = os.environ if environ is None else environ
        return cls(
            token=env.get('GITHUB_TOKEN') or None,
            host=env.get('HOST', HOST),
            port=int(env.get('PORT', PORT)),
            chunk_size=int(env.get('CHUNK_SIZE', CHUNK_SIZE)),
            connect_timeout=float(env.get('CONNECT_TIMEOUT', CONNECT_TIMEOUT)),
            read_timeout=float(env.get('READ_TIMEOUT', READ_TIMEOUT)),
            allowed_hosts=_split_hosts(env.get('ALLOWED_HOSTS', '')),
        )

    @property
    def bound_url(self):
        return f'http://{self.host}:{self.port}'

    @property
    def timeout(self):
        return (self.connect_timeout, self.read_timeout)
