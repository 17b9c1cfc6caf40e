"""
CRM API HTTP client

Thin wrapper over a requests.Session that runs each call on a worker thread
and hands back a future. Identical requests (same method, url and params)
supersede each other: only the newest one in flight delivers a result.
"""

import copy
import json
import logging
import os
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = os.environ.get('CRM_API_URL', 'http://localhost:5000')
DEFAULT_TIMEOUT = 10
DUPLICATE_IN_FLIGHT = 'Request cancelled - duplicate in flight'

DEFAULT_USER_SETTINGS = {
    'theme': 'light',
    'language': 'en',
    'notifications': {'email': True, 'browser': True, 'mobile': False},
    'dashboard': {'showRevenue': True, 'showBookings': True},
    'display': {'compactMode': False, 'tableRows': 10},
}

# URL fragment -> payload served when that endpoint answers 404
NOT_FOUND_DEFAULTS = {
    '/communications': [],
    '/settings/user': DEFAULT_USER_SETTINGS,
}


def normalize_base_url(base_url: str) -> str:
    base_url = base_url.rstrip('/')
    if not base_url.endswith('/api'):
        base_url = f"{base_url}/api"
    return base_url


def request_key(method: Optional[str], url: Optional[str], params: Optional[Dict[str, Any]] = None) -> str:
    """Identity of a request for de-duplication: method, url and serialized params."""
    serialized = json.dumps(params or {}, separators=(',', ':'), default=str)
    return f"{(method or 'get').lower()}:{url or ''}:{serialized}"


class RequestCancelled(Exception):
    code = 'ERR_CANCELED'

    def __init__(self, message=DUPLICATE_IN_FLIGHT):
        super().__init__(message)
        self.message = message


class ApiResponse:
    def __init__(self, data, status, headers=None, config=None):
        self.data = data
        self.status = status
        self.headers = dict(headers or {})
        self.config = config or {}

    @property
    def ok(self):
        return 200 <= self.status < 300

    def __repr__(self):
        return f"<ApiResponse {self.status} {self.config.get('method', '')} {self.config.get('url', '')}>"


class ApiError(Exception):
    """
    Failed API call.

    ``response`` is set when the server answered with a non-2xx status;
    ``request`` is set when no answer arrived, with ``code`` telling timeouts
    (``ECONNABORTED``) from unreachable servers (``ERR_NETWORK``).
    """

    def __init__(self, message, code=None, response=None, request=None, config=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.response = response
        self.request = request
        self.config = config or {}

    @property
    def status(self):
        return self.response.status if self.response is not None else None


def is_cancel(error) -> bool:
    if isinstance(error, RequestCancelled):
        return True
    return (getattr(error, 'message', None) == DUPLICATE_IN_FLIGHT
            or getattr(error, 'code', None) == RequestCancelled.code)


class CancelToken:
    """One-shot cancellation signal shared between the registry and a request."""

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks = []
        self.reason = None

    @property
    def cancelled(self):
        return self._event.is_set()

    def cancel(self, reason=DUPLICATE_IN_FLIGHT):
        with self._lock:
            if self._event.is_set():
                return
            self.reason = reason
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(reason)

    def add_callback(self, callback):
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback(self.reason)

    def raise_if_cancelled(self):
        if self.cancelled:
            raise RequestCancelled(self.reason)


class PendingRequest(Future):
    """Future for one submitted call; settles exactly once."""

    def __init__(self, key, token, method, url):
        super().__init__()
        self.key = key
        self.token = token
        self.method = method
        self.url = url
        self._settle_lock = threading.Lock()
        token.add_callback(lambda reason: self._settle(exception=RequestCancelled(reason)))

    def _settle(self, result=None, exception=None):
        with self._settle_lock:
            if self.done():
                return False
            if exception is not None:
                self.set_exception(exception)
            else:
                self.set_result(result)
            return True

    def __repr__(self):
        return f"<PendingRequest {self.key} done={self.done()}>"


class ApiClient:
    """HTTP client for the CRM REST API."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None, max_workers: int = 8,
                 not_found_defaults: Optional[Dict[str, Any]] = None):
        self.base_url = normalize_base_url(base_url)
        self.timeout = timeout
        self.session = session or requests.Session()
        self.not_found_defaults = NOT_FOUND_DEFAULTS if not_found_defaults is None else not_found_defaults
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='crm-api')
        self._pending: Dict[str, CancelToken] = {}
        self._lock = threading.Lock()

    def _register(self, key):
        token = CancelToken()
        with self._lock:
            previous = self._pending.pop(key, None)
            self._pending[key] = token
        if previous is not None:
            logger.info(f"Request cancelled: {key}")
            previous.cancel(DUPLICATE_IN_FLIGHT)
        return token

    def _release(self, key, token):
        with self._lock:
            if self._pending.get(key) is token:
                del self._pending[key]

    def in_flight(self):
        with self._lock:
            return list(self._pending)

    def submit(self, method, url, params=None, json=None, headers=None) -> PendingRequest:
        """Dispatch a request on a worker thread and return its future."""
        method = (method or 'get').lower()
        key = request_key(method, url, params)
        token = self._register(key)

        if method == 'get':
            params = dict(params or {}, _t=int(time.time() * 1000))

        pending = PendingRequest(key, token, method, url)
        config = {'method': method, 'url': url, 'params': params, 'headers': headers}

        try:
            work = self._executor.submit(self._perform, config, json, token)
        except RuntimeError as e:
            self._release(key, token)
            pending._settle(exception=ApiError(str(e), config=config))
            return pending

        def complete(done):
            self._release(key, token)
            if token.cancelled:
                pending._settle(exception=RequestCancelled(token.reason))
                return
            error = done.exception()
            if error is not None:
                pending._settle(exception=error)
            else:
                pending._settle(result=done.result())

        work.add_done_callback(complete)
        return pending

    def _perform(self, config, body, token):
        token.raise_if_cancelled()
        method, url = config['method'], config['url']
        try:
            response = self.session.request(
                method.upper(),
                f"{self.base_url}{url}",
                params=config['params'],
                json=body,
                headers=config['headers'],
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise ApiError(str(e), code='ECONNABORTED', request={'method': method, 'url': url}, config=config) from e
        except requests.exceptions.ConnectionError as e:
            raise ApiError(str(e), code='ERR_NETWORK', request={'method': method, 'url': url}, config=config) from e
        except requests.exceptions.RequestException as e:
            raise ApiError(str(e), request={'method': method, 'url': url}, config=config) from e

        result = ApiResponse(self._decode(response), response.status_code, response.headers, config)
        if result.ok:
            return result

        if result.status == 404:
            fallback = self._not_found_default(url)
            if fallback is not None:
                return fallback

        code = 'ERR_BAD_REQUEST' if 400 <= result.status < 500 else 'ERR_BAD_RESPONSE'
        raise ApiError(f"Request failed with status code {result.status}", code=code,
                       response=result, config=config)

    def _not_found_default(self, url):
        for fragment, payload in self.not_found_defaults.items():
            if fragment in url:
                logger.info(f"Endpoint not found (404): {url}, returning default data")
                return ApiResponse(copy.deepcopy(payload), 200, config={'method': 'get', 'url': url})
        return None

    @staticmethod
    def _decode(response):
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def request(self, method, url, **kwargs) -> ApiResponse:
        return self.submit(method, url, **kwargs).result()

    def get(self, url, params=None, headers=None):
        return self.request('get', url, params=params, headers=headers)

    def post(self, url, json=None, headers=None):
        return self.request('post', url, json=json, headers=headers)

    def put(self, url, json=None, headers=None):
        return self.request('put', url, json=json, headers=headers)

    def patch(self, url, json=None, headers=None):
        return self.request('patch', url, json=json, headers=headers)

    def delete(self, url, headers=None):
        return self.request('delete', url, headers=headers)

    def close(self):
        """Cancel everything still in flight and stop the worker threads."""
        with self._lock:
            tokens = list(self._pending.values())
            self._pending.clear()
        for token in tokens:
            token.cancel('Client closed')
        self._executor.shutdown(wait=False, cancel_futures=True)
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
