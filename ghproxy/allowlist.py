# -*- coding: utf-8 -*-
from .errors import DomainNotAllowed
from .routing import RouteMode


# GitHub content-serving host family
GITHUB_HOSTS = frozenset([
    'github.com',
    'www.github.com',
    'api.github.com',
    'codeload.github.com',
    'gist.github.com',
    'raw.githubusercontent.com',
    'gist.githubusercontent.com',
    'avatars.githubusercontent.com',
    'user-images.githubusercontent.com',
    'private-user-images.githubusercontent.com',
    'objects.githubusercontent.com',
    'media.githubusercontent.com',
    'github-releases.githubusercontent.com',
    'release-assets.githubusercontent.com',
    'github-cloud.s3.amazonaws.com',
])


def _normalize(hostname):
    return (hostname or '').strip().rstrip('.').lower()


class DomainAllowlist:
    def __init__(self, hosts=GITHUB_HOSTS, extra=()):
        self._hosts = frozenset(_normalize(h) for h in (*hosts, *extra))

    def __contains__(self, hostname):
        return self.is_allowed(hostname)

    def is_allowed(self, hostname):
        host = _normalize(hostname)
        return bool(host) and host in self._hosts

    def require(self, intent):
        """Reject a generic intent whose host is not allowlisted.

        The other route modes target hardcoded hosts and are not checked.
        """
        if intent.mode is RouteMode.GENERIC and not self.is_allowed(intent.upstream_host):
            raise DomainNotAllowed(f'Domain not allowed: {intent.upstream_host}')
        return intent
