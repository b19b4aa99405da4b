# -*- coding: utf-8 -*-
"""Fault taxonomy for the proxy.

Every fault the core can produce is a ``ProxyError`` carrying the HTTP status
it maps to and a short ``kind`` used both in the JSON error body and in the
structured log record.
"""
import json
import logging


class ProxyError(Exception):
    kind = 'ProxyError'
    status = 500

    def __init__(self, message=''):
        super().__init__(message)
        self.message = message or self.kind

    def to_dict(self):
        return {'error': self.kind, 'message': self.message}

    def record(self, route=''):
        return {'kind': self.kind, 'message': self.message, 'route': route}


# ----------------------
# Client input errors (400)
# ----------------------
class ClassificationError(ProxyError):
    kind = 'ClassificationError'
    status = 400


class MalformedPath(ClassificationError):
    kind = 'MalformedPath'


class EmptyPath(ClassificationError):
    kind = 'EmptyPath'


class MissingTarget(ClassificationError):
    kind = 'MissingTarget'


class InvalidUrl(ClassificationError):
    kind = 'InvalidUrl'


# ----------------------
# Policy / upstream / internal
# ----------------------
class DomainNotAllowed(ProxyError):
    kind = 'DomainNotAllowed'
    status = 403


class UpstreamTransportError(ProxyError):
    kind = 'UpstreamTransportError'
    status = 502


class InternalError(ProxyError):
    kind = 'InternalError'
    status = 500


def log_fault(logger, error, route=''):
    """Write the structured record of ``error`` as one JSON line."""
    level = logging.ERROR if error.status >= 500 else logging.WARNING
    logger.log(level, json.dumps(error.record(route), ensure_ascii=False))
