"""
Per-request logging with timing and memory metrics
"""
import time
import logging
import json
import uuid
from flask import request, g
import psutil

logger = logging.getLogger(__name__)


class RequestLogger:
    """Flask before/after hooks that log one line per request"""

    @staticmethod
    def init_app(app):
        app.before_request(RequestLogger.before_request)
        app.after_request(RequestLogger.after_request)

    @staticmethod
    def before_request():
        g.start_time = time.time()
        g.request_id = uuid.uuid4().hex[:12]
        try:
            g.initial_memory = psutil.Process().memory_info().rss
        except psutil.Error as e:
            logger.debug(f"Could not collect initial process metrics: {e}")
            g.initial_memory = 0

    @staticmethod
    def after_request(response):
        if not hasattr(g, 'start_time'):
            return response

        duration_ms = (time.time() - g.start_time) * 1000

        memory_diff = 0
        try:
            if getattr(g, 'initial_memory', 0) > 0:
                memory_diff = psutil.Process().memory_info().rss - g.initial_memory
        except psutil.Error as e:
            logger.debug(f"Could not collect final process metrics: {e}")

        log_data = {
            'request_id': g.request_id,
            'method': request.method,
            'path': request.path,
            'endpoint': request.endpoint,
            'remote_addr': request.remote_addr,
            'duration_ms': round(duration_ms, 2),
            'status_code': response.status_code,
            'memory_delta_mb': round(memory_diff / (1024 * 1024), 3) if memory_diff > 0 else 0,
        }
        if request.args:
            log_data['query_params'] = dict(request.args)

        log_level = logging.ERROR if response.status_code >= 400 else logging.INFO
        logger.log(log_level, f"REQUEST_LOG: {json.dumps(log_data)}")

        response.headers['X-Request-ID'] = g.request_id
        return response
