# -*- coding: utf-8 -*-
import logging
import os

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import HTTPException

from .allowlist import DomainAllowlist
from .config import ProxyConfig
from .errors import InternalError, ProxyError, log_fault
from .forwarder import StreamForwarder
from .routing import classify

logger = logging.getLogger(__name__)

METHODS = ['GET', 'HEAD', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS']

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'GET, POST, PUT, PATCH, DELETE, HEAD, OPTIONS',
    'Access-Control-Allow-Headers': '*',
    'Access-Control-Expose-Headers': '*',
}


def create_app(config=None, session=None):
    """Build the Flask application around one forwarder.

    ``session`` replaces the upstream ``requests.Session``; tests pass a fake.
    """
    config = config or ProxyConfig.from_env()
    allowlist = DomainAllowlist(extra=config.allowed_hosts)
    forwarder = StreamForwarder(config, allowlist, session=session)

    app = Flask(__name__)
    app.config['PROXY'] = config

    # ----------------------
    # Routes
    # ----------------------
    # keep crawlers away
    @app.route('/robots.txt')
    def robots():
        return Response("User-agent: *\r\nDisallow: /", status=200, mimetype='text/plain')

    @app.route('/', defaults={'path': ''}, methods=METHODS, provide_automatic_options=False)
    @app.route('/<path:path>', methods=METHODS, provide_automatic_options=False)
    def handler(path):
        # CORS preflight never reaches upstream
        if request.method == 'OPTIONS':
            return Response(status=200)
        query = request.query_string.decode('utf-8', 'replace')
        intent = classify(request.path, query)
        return forwarder.forward(intent, request)

    @app.after_request
    def add_cors_headers(response):
        response.headers.update(CORS_HEADERS)
        return response

    # ----------------------
    # Error handling
    # ----------------------
    @app.errorhandler(ProxyError)
    def proxy_error(e):
        log_fault(logger, e, request.path)
        return jsonify(e.to_dict()), e.status

    @app.errorhandler(Exception)
    def internal_error(e):
        if isinstance(e, HTTPException):
            return e
        logger.exception('Unexpected error handling %s %s', request.method, request.path)
        error = InternalError(str(e) or type(e).__name__)
        log_fault(logger, error, request.path)
        return jsonify(error.to_dict()), error.status

    return app


app = create_app()


def main():
    logging.basicConfig(
        level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    config = app.config['PROXY']
    logger.info('Starting GitHub proxy on %s:%s', config.host, config.port)
    app.run(host=config.host, port=config.port, threaded=True)


# ----------------------
# Start
# ----------------------
if __name__ == '__main__':
    main()
