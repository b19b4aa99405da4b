# -*- coding: utf-8 -*-
"""Content-type and cache policy for proxied responses.

Git clients check the smart-protocol content types strictly, so responses on
the ``info/refs`` and ``git-*-pack`` endpoints always carry the type the client
expects, whatever the upstream sent.
"""
from .routing import INFO_REFS, RECEIVE_PACK, UPLOAD_PACK, RouteMode

NO_CACHE = {
    'Cache-Control': 'no-cache, max-age=0, must-revalidate',
    'Pragma': 'no-cache',
    'Expires': 'Fri, 01 Jan 1980 00:00:00 GMT',
}
PUBLIC_CACHE = {
    'Cache-Control': 'public, max-age=3600',
}


def _service(text):
    return 'upload' if 'upload-pack' in text else 'receive'


def is_git_endpoint(upstream_path):
    return (INFO_REFS in upstream_path
            or upstream_path.rsplit('/', 1)[-1] in (UPLOAD_PACK, RECEIVE_PACK))


def negotiate_content_type(upstream_path, upstream_content_type=None, query=''):
    if INFO_REFS in upstream_path:
        return f'application/x-git-{_service(upstream_path + "?" + query)}-pack-advertisement'
    endpoint = upstream_path.rsplit('/', 1)[-1]
    if endpoint in (UPLOAD_PACK, RECEIVE_PACK):
        return f'application/x-git-{_service(endpoint)}-pack-result'
    return upstream_content_type


def cache_headers(intent):
    """Cache headers to force on the response; ``None`` values are removed."""
    if intent.mode is RouteMode.GIT_SMART or is_git_endpoint(intent.upstream_path):
        return dict(NO_CACHE)
    return {**PUBLIC_CACHE, 'Pragma': None, 'Expires': None}
