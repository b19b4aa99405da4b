# -*- coding: utf-8 -*-
from urllib.parse import quote, urlsplit


def _first(value):
    return value.split(',')[0].strip() if value else ''


def proxy_base_url(headers, fallback, scheme='http'):
    """Public base URL of this proxy as seen by the client.

    Forwarded headers win over ``Host``; ``fallback`` is the address the
    server was bound to.
    """
    proto = _first(headers.get('X-Forwarded-Proto')) or scheme
    host = _first(headers.get('X-Forwarded-Host'))
    if host:
        return f'{proto}://{host}'
    host = headers.get('Host')
    if host:
        return f'{proto}://{host}'
    return fallback.rstrip('/')


def rewrite_location(location, base_url, allowlist):
    """Send redirects into the GitHub family back through ``/proxy``."""
    if not location:
        return location
    try:
        hostname = urlsplit(location).hostname
    except ValueError:
        return location
    if not hostname or not allowlist.is_allowed(hostname):
        return location
    return f'{base_url}/proxy?url={quote(location, safe="")}'
