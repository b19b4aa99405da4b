# -*- coding: utf-8 -*-
import logging
from urllib.parse import urljoin

import requests
from flask import Response
from requests.exceptions import (
    ChunkedEncodingError, ConnectionError, ContentDecodingError, RequestException)
from requests.structures import CaseInsensitiveDict
from urllib3.exceptions import DecodeError, HTTPError, ProtocolError, ReadTimeoutError
from werkzeug.datastructures import Headers

from . import __version__
from .errors import UpstreamTransportError, log_fault
from .negotiate import cache_headers, negotiate_content_type
from .redirects import proxy_base_url, rewrite_location
from .routing import RouteMode

logger = logging.getLogger(__name__)

GIT_USER_AGENT = 'git/2.30.0'
PROXY_USER_AGENT = f'ghproxy/{__version__}'

BODY_METHODS = ('POST', 'PUT', 'PATCH')

HOP_BY_HOP = frozenset([
    'connection', 'keep-alive', 'proxy-authenticate', 'proxy-authorization',
    'proxy-connection', 'te', 'trailer', 'trailers', 'transfer-encoding', 'upgrade'])

# upstream response headers that only make sense on the origin
RESPONSE_HEADERS_TO_REMOVE = frozenset(h.lower() for h in [
    'Strict-Transport-Security', 'Clear-Site-Data', 'Content-Security-Policy',
    'Content-Security-Policy-Report-Only', 'Cross-Origin-Resource-Policy',
    'X-GitHub-Request-Id', 'X-Fastly-Request-ID', 'Via', 'X-Served-By', 'X-Cache',
    'X-Cache-Hits', 'X-Timer', 'Expires', 'Source-Age'])


# ----------------------
# Outbound headers: copy inbound -> strip forbidden -> set fixed -> override computed
# ----------------------
def strip_forbidden(headers, intent, token):
    for name in list(headers):
        lower = name.lower()
        if lower in HOP_BY_HOP or lower in ('host', 'content-length'):
            del headers[name]
    if intent.mode is RouteMode.GENERIC:
        headers.pop('Origin', None)
        headers.pop('Referer', None)


def set_fixed(headers, intent, token):
    headers['User-Agent'] = GIT_USER_AGENT if intent.mode is RouteMode.GIT_SMART else PROXY_USER_AGENT
    headers.setdefault('Accept', '*/*')


def override_computed(headers, intent, token):
    headers['Host'] = intent.upstream_host
    if token:
        headers['Authorization'] = f'token {token}'


OUTBOUND_STEPS = (strip_forbidden, set_fixed, override_computed)


def build_outbound_headers(inbound, intent, token=None):
    headers = CaseInsensitiveDict(list(inbound.items()))
    for step in OUTBOUND_STEPS:
        step(headers, intent, token)
    return headers


# ----------------------
# Inbound body
# ----------------------
class UpstreamBody:
    """File-like view of the inbound body with a known length.

    ``requests`` takes the length from ``__len__`` and sends a Content-Length
    request; the bytes are read from the client only as urllib3 sends them.
    """

    def __init__(self, stream, length):
        self._stream = stream
        self._length = length

    def __len__(self):
        return self._length

    def read(self, size=-1):
        return self._stream.read(size)


def request_body(inbound, chunk_size):
    if inbound.method not in BODY_METHODS:
        return None
    if inbound.content_length is not None:
        return UpstreamBody(inbound.stream, inbound.content_length)
    # unknown length: relay as chunked transfer
    return iter(lambda: inbound.stream.read(chunk_size), b'')


# ----------------------
# Response headers
# ----------------------
def build_response_headers(upstream, intent, base_url, allowlist):
    headers = Headers()
    for name, value in upstream.headers.items():
        lower = name.lower()
        if lower in HOP_BY_HOP or lower in RESPONSE_HEADERS_TO_REMOVE or lower.startswith('access-control-'):
            continue
        headers.add(name, value)

    content_type = negotiate_content_type(
        intent.upstream_path, upstream.headers.get('Content-Type'), intent.upstream_query)
    if content_type:
        headers['Content-Type'] = content_type

    location = upstream.headers.get('Location')
    if location:
        absolute = urljoin(intent.url, location)
        rewritten = rewrite_location(absolute, base_url, allowlist)
        headers['Location'] = location if rewritten == absolute else rewritten

    for name, value in cache_headers(intent).items():
        if value is None:
            headers.pop(name, None)
        else:
            headers[name] = value
    return headers


# ----------------------
# Body relay
# ----------------------
def iter_raw(response, chunk_size):
    """Iterate the upstream body as received, with decode_content=False."""
    raw = response.raw
    if hasattr(raw, 'stream'):
        try:
            yield from raw.stream(chunk_size, decode_content=False)
        except ProtocolError as e:
            raise ChunkedEncodingError(e)
        except DecodeError as e:
            raise ContentDecodingError(e)
        except ReadTimeoutError as e:
            raise ConnectionError(e)
    else:
        # Standard file-like object.
        while True:
            chunk = raw.read(chunk_size)
            if not chunk:
                break
            yield chunk


class StreamForwarder:
    def __init__(self, config, allowlist, session=None):
        self.config = config
        self.allowlist = allowlist
        if session is None:
            session = requests.Session()
            session.headers.clear()
        self.session = session

    def forward(self, intent, inbound):
        """Execute ``intent`` upstream and return the streamed Flask response.

        Raises ``DomainNotAllowed`` before any network I/O and
        ``UpstreamTransportError`` when the upstream call fails before the
        response exists. Failures while relaying the body truncate it.
        """
        self.allowlist.require(intent)

        headers = build_outbound_headers(inbound.headers, intent, self.config.token)
        body = request_body(inbound, self.config.chunk_size)
        logger.debug('%s %s -> %s', inbound.method, inbound.path, intent.url)
        try:
            upstream = self.session.request(
                method=inbound.method,
                url=intent.url,
                headers=headers,
                data=body,
                stream=True,
                allow_redirects=False,
                timeout=self.config.timeout,
            )
        except RequestException as e:
            raise UpstreamTransportError(f'{type(e).__name__}: {e}') from e

        try:
            base_url = proxy_base_url(inbound.headers, self.config.bound_url, inbound.scheme)
            response_headers = build_response_headers(upstream, intent, base_url, self.allowlist)
        except Exception:
            upstream.close()
            raise

        response = Response(
            self._relay(upstream, inbound.path),
            status=upstream.status_code,
            headers=response_headers,
            direct_passthrough=True,
        )
        if 'Content-Type' not in response_headers:
            # no upstream type; keep werkzeug from adding text/html
            response.headers.pop('Content-Type', None)
        response.call_on_close(upstream.close)
        return response

    def _relay(self, upstream, route):
        try:
            for chunk in iter_raw(upstream, self.config.chunk_size):
                if chunk:
                    yield chunk
        except (RequestException, HTTPError, OSError) as e:
            # status and headers are already on the wire; drop the connection
            error = UpstreamTransportError(f'stream interrupted: {type(e).__name__}: {e}')
            log_fault(logger, error, route)
            raise error from e
        finally:
            upstream.close()
