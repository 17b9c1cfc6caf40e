import json
import threading


class FakeResponse:
    def __init__(self, status_code=200, payload=None, headers=None):
        self.status_code = status_code
        self.headers = headers or {'Content-Type': 'application/json'}
        self._payload = payload
        self.content = b'' if payload is None else json.dumps(payload).encode()
        self.text = self.content.decode()

    def json(self):
        return json.loads(self.content)


class FakeSession:
    """
    Stands in for requests.Session. ``responder(call)`` builds the answer;
    calls listed in ``hold`` block until ``release(n)`` is called.
    """

    def __init__(self, responder=None, hold=()):
        self.responder = responder or (lambda call: FakeResponse(200, {'call': call['n']}))
        self.calls = []
        self.closed = False
        self._lock = threading.Lock()
        self._gates = {n: threading.Event() for n in hold}
        self._entered = {n: threading.Event() for n in hold}

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        with self._lock:
            call = {
                'n': len(self.calls) + 1,
                'method': method,
                'url': url,
                'params': params,
                'json': json,
                'headers': headers,
                'timeout': timeout,
            }
            self.calls.append(call)
        if call['n'] in self._gates:
            self._entered[call['n']].set()
            self._gates[call['n']].wait(5)
        return self.responder(call)

    def wait_entered(self, n):
        assert self._entered[n].wait(5), f"call {n} never started"

    def release(self, n):
        self._gates[n].set()

    def close(self):
        self.closed = True
