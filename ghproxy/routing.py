# -*- coding: utf-8 -*-
"""Path classification.

Maps an inbound request path and raw query string onto a ``RouteIntent``:
the upstream host, the upstream path (wire form) and query, and the route
mode that decides the header and cache policy applied by the forwarder.
Pure functions only; nothing here touches the network.
"""
from dataclasses import dataclass
from enum import Enum
from urllib.parse import parse_qsl, quote, unquote, urlencode, urlsplit

from .errors import EmptyPath, InvalidUrl, MalformedPath, MissingTarget


class RouteMode(Enum):
    RAW = 'raw'
    GIT_SMART = 'git'
    DOWNLOAD = 'download'
    AVATAR = 'avatar'
    GENERIC = 'generic'


GITHUB_HOST = 'github.com'
RAW_HOST = 'raw.githubusercontent.com'
AVATAR_HOST = 'avatars.githubusercontent.com'

PREFIXES = {
    'git': RouteMode.GIT_SMART,
    'repo': RouteMode.GIT_SMART,
    'download': RouteMode.DOWNLOAD,
    'avatar': RouteMode.AVATAR,
    'raw': RouteMode.RAW,
}

# query-dispatch form: /?type=raw&path=octo/hello/main/README.md
LEGACY_TYPES = ('raw', 'repo', 'git', 'download', 'avatar')

INFO_REFS = 'info/refs'
UPLOAD_PACK = 'git-upload-pack'
RECEIVE_PACK = 'git-receive-pack'

# characters kept literal when re-encoding a decoded path segment
SEGMENT_SAFE = "@!$&'()*+,;=:"

DEFAULT_PORTS = {'http': 80, 'https': 443}


@dataclass(frozen=True)
class RouteIntent:
    upstream_host: str
    upstream_path: str
    upstream_query: str
    mode: RouteMode

    @property
    def url(self):
        url = f'https://{self.upstream_host}{self.upstream_path}'
        return f'{url}?{self.upstream_query}' if self.upstream_query else url

    @property
    def route(self):
        return self.mode.value


# ----------------------
# Helpers
# ----------------------
def _segments(path):
    return [s for s in (path or '').split('/') if s]


def _join(segments):
    return '/' + '/'.join(quote(s, safe=SEGMENT_SAFE) for s in segments)


def _strip_git(name):
    return name[:-4] if name.endswith('.git') else name


def smart_endpoint(segments):
    """Return the Git smart-HTTP endpoint named by ``segments``, if any."""
    for i, seg in enumerate(segments):
        if seg in (UPLOAD_PACK, RECEIVE_PACK):
            return seg
        if seg == 'info' and segments[i + 1:i + 2] == ['refs']:
            return INFO_REFS
    return None


def _avatar_query(query):
    if any(k == 'v' for k, _ in parse_qsl(query, keep_blank_values=True)):
        return query
    return 'v=4&' + query if query else 'v=4'


# ----------------------
# Per-mode builders
# ----------------------
def _raw(rest, query):
    if len(rest) < 4:
        raise MalformedPath('Expected /raw/{owner}/{repo}/{ref}/{path}')
    owner, repo = rest[0], _strip_git(rest[1])
    if not repo:
        raise MalformedPath('Empty repository name')
    return RouteIntent(RAW_HOST, _join([owner, repo, *rest[2:]]), query, RouteMode.RAW)


def _git(rest, query):
    if len(rest) < 2:
        raise MalformedPath('Expected /{owner}/{repo}[.git]/...')
    owner, repo, tail = rest[0], _strip_git(rest[1]), rest[2:]
    if not repo:
        raise MalformedPath('Empty repository name')
    endpoint = smart_endpoint(tail)
    if endpoint == INFO_REFS:
        # service=git-upload-pack|git-receive-pack must reach upstream untouched
        return RouteIntent(GITHUB_HOST, _join([owner, repo]) + '/info/refs', query,
                           RouteMode.GIT_SMART)
    if endpoint:
        return RouteIntent(GITHUB_HOST, _join([owner, repo, endpoint]), '', RouteMode.GIT_SMART)
    return RouteIntent(GITHUB_HOST, _join([owner, repo, *tail]), query, RouteMode.GIT_SMART)


def _download(rest, query):
    if len(rest) < 3:
        raise MalformedPath('Expected /download/{owner}/{repo}/releases/download/{tag}/{asset}')
    return RouteIntent(GITHUB_HOST, _join([rest[0], _strip_git(rest[1]), *rest[2:]]), query,
                       RouteMode.DOWNLOAD)


def _avatar(rest, query):
    if len(rest) == 1 and rest[0].isdigit():
        return RouteIntent(AVATAR_HOST, _join(['u', rest[0]]), _avatar_query(query),
                           RouteMode.AVATAR)
    if rest[0] == 'u':
        return RouteIntent(AVATAR_HOST, _join(rest), _avatar_query(query), RouteMode.AVATAR)
    return RouteIntent(AVATAR_HOST, _join(rest), query, RouteMode.AVATAR)


def _generic(target):
    # query parsing already decoded once; undo a second layer of encoding
    if '://' not in target and '://' in unquote(target):
        target = unquote(target)
    try:
        parts = urlsplit(target.strip())
        hostname = parts.hostname
        port = parts.port
    except ValueError as e:
        raise InvalidUrl(f'Invalid url: {target}') from e
    scheme = parts.scheme.lower()
    if scheme not in DEFAULT_PORTS or not hostname:
        raise InvalidUrl(f'Invalid url: {target}')
    # upstream calls always go to https on the default port
    if parts.username is not None or port not in (None, DEFAULT_PORTS[scheme]):
        raise InvalidUrl(f'Unsupported userinfo or port in url: {target}')
    return RouteIntent(hostname, parts.path or '/', parts.query, RouteMode.GENERIC)


_BUILDERS = {
    RouteMode.RAW: _raw,
    RouteMode.GIT_SMART: _git,
    RouteMode.DOWNLOAD: _download,
    RouteMode.AVATAR: _avatar,
}


def classify(path, query_string=''):
    """Classify a decoded request path and its raw query string.

    Raises a ``ClassificationError`` subclass when no route applies.
    ``upstream_path`` comes back in wire form, so re-classifying it needs
    ``unquote`` first.
    """
    segments = _segments(path)

    if segments and segments[0] in PREFIXES:
        mode = PREFIXES[segments[0]]
        if len(segments) == 1:
            raise EmptyPath(f'No resource path after /{segments[0]}/')
        return _BUILDERS[mode](segments[1:], query_string)

    # bare /{owner}/{repo}[.git]/info/refs and friends
    if smart_endpoint(segments):
        return _git(segments, query_string)

    pairs = parse_qsl(query_string, keep_blank_values=True)
    params = {}
    for k, v in pairs:
        params.setdefault(k, v)

    if params.get('type') in LEGACY_TYPES:
        remaining = urlencode([(k, v) for k, v in pairs if k not in ('type', 'path')])
        return classify('/{}/{}'.format(params['type'], params.get('path', '')), remaining)

    if params.get('url'):
        return _generic(params['url'])

    raise MissingTarget('Missing target: use a route prefix or the url parameter')
