import pytest
import requests

from crm_client.http import (
    ApiClient, ApiError, CancelToken, RequestCancelled, DEFAULT_USER_SETTINGS, DUPLICATE_IN_FLIGHT,
    is_cancel, normalize_base_url, request_key,
)
from fakes import FakeResponse, FakeSession


@pytest.fixture
def make_client():
    clients = []

    def factory(session):
        client = ApiClient('http://crm.test', session=session)
        clients.append((client, session))
        return client

    yield factory
    for client, session in clients:
        for n in list(session._gates):
            session.release(n)
        client.close()


def test_normalize_base_url():
    assert normalize_base_url('http://crm.test') == 'http://crm.test/api'
    assert normalize_base_url('http://crm.test/') == 'http://crm.test/api'
    assert normalize_base_url('http://crm.test/api/') == 'http://crm.test/api'


def test_request_key():
    assert request_key('GET', '/customers', {'period': 'week'}) == 'get:/customers:{"period":"week"}'
    assert request_key(None, '/customers') == 'get:/customers:{}'
    assert request_key('post', None, None) == 'post::{}'


def test_is_cancel():
    assert is_cancel(RequestCancelled())
    assert is_cancel(ApiError(DUPLICATE_IN_FLIGHT))
    assert is_cancel(ApiError('aborted', code='ERR_CANCELED'))
    assert not is_cancel(ApiError('boom', code='ERR_NETWORK'))
    assert not is_cancel(ValueError('x'))


class TestDispatch:

    def test_get_adds_cache_buster_and_returns_data(self, make_client):
        session = FakeSession()
        client = make_client(session)
        response = client.get('/customers', params={'status': 'active'})
        assert response.status == 200
        assert response.data == {'call': 1}
        call = session.calls[0]
        assert call['method'] == 'GET'
        assert call['url'] == 'http://crm.test/api/customers'
        assert call['params']['status'] == 'active'
        assert isinstance(call['params']['_t'], int)
        assert call['timeout'] == 10

    def test_post_sends_body_without_cache_buster(self, make_client):
        session = FakeSession()
        client = make_client(session)
        client.post('/customers', json={'company_name': 'Acme'})
        call = session.calls[0]
        assert call['json'] == {'company_name': 'Acme'}
        assert call['params'] is None

    def test_registry_key_ignores_cache_buster(self, make_client):
        session = FakeSession(hold=(1,))
        client = make_client(session)
        pending = client.submit('get', '/customers')
        session.wait_entered(1)
        assert client.in_flight() == ['get:/customers:{}']
        session.release(1)
        pending.result(timeout=5)

    def test_registry_cleared_after_completion(self, make_client):
        client = make_client(FakeSession())
        client.get('/customers')
        assert client.in_flight() == []


class TestDuplicateCancellation:

    def test_newer_duplicate_cancels_older(self, make_client):
        session = FakeSession(hold=(1,))
        client = make_client(session)

        first = client.submit('get', '/customers')
        session.wait_entered(1)
        second = client.submit('get', '/customers')

        with pytest.raises(RequestCancelled) as exc_info:
            first.result(timeout=5)
        assert exc_info.value.message == DUPLICATE_IN_FLIGHT
        assert exc_info.value.code == 'ERR_CANCELED'
        assert second.result(timeout=5).data == {'call': 2}

    def test_cancelled_request_stays_cancelled_when_its_response_arrives(self, make_client):
        session = FakeSession(hold=(1,))
        client = make_client(session)

        first = client.submit('get', '/customers')
        session.wait_entered(1)
        client.submit('get', '/customers').result(timeout=5)
        session.release(1)

        with pytest.raises(RequestCancelled):
            first.result(timeout=5)

    def test_different_params_do_not_collide(self, make_client):
        session = FakeSession(hold=(1,))
        client = make_client(session)

        first = client.submit('get', '/reports/financial', params={'period': 'week'})
        session.wait_entered(1)
        second = client.submit('get', '/reports/financial', params={'period': 'year'})
        assert second.result(timeout=5).data == {'call': 2}
        session.release(1)
        assert first.result(timeout=5).data == {'call': 1}

    def test_stale_release_keeps_newer_registration(self, make_client):
        client = make_client(FakeSession())
        key = request_key('get', '/customers')
        older = client._register(key)
        newer = client._register(key)
        assert older.cancelled
        assert not newer.cancelled

        client._release(key, older)
        assert client.in_flight() == [key]
        client._release(key, newer)
        assert client.in_flight() == []

    def test_close_cancels_pending(self, make_client):
        session = FakeSession(hold=(1,))
        client = make_client(session)
        pending = client.submit('get', '/customers')
        session.wait_entered(1)
        client.close()
        with pytest.raises(RequestCancelled):
            pending.result(timeout=5)
        assert session.closed


def test_cancel_token_runs_callbacks_once():
    token = CancelToken()
    seen = []
    token.add_callback(seen.append)
    token.cancel('first')
    token.cancel('second')
    token.add_callback(seen.append)
    assert seen == ['first', 'first']
    assert token.reason == 'first'


class TestNotFoundDefaults:

    def test_communications_404_becomes_empty_list(self, make_client):
        client = make_client(FakeSession(lambda call: FakeResponse(404, {'message': 'missing'})))
        for url in ('/communications', '/customers/c1/communications'):
            response = client.get(url)
            assert response.status == 200
            assert response.data == []

    def test_settings_404_becomes_defaults(self, make_client):
        client = make_client(FakeSession(lambda call: FakeResponse(404)))
        first = client.get('/settings/user').data
        assert first == DEFAULT_USER_SETTINGS
        first['theme'] = 'dark'
        assert client.get('/settings/user').data['theme'] == 'light'

    def test_other_404s_raise(self, make_client):
        client = make_client(FakeSession(lambda call: FakeResponse(404, {'message': 'Customer not found'})))
        with pytest.raises(ApiError) as exc_info:
            client.get('/customers/ghost')
        error = exc_info.value
        assert error.status == 404
        assert error.code == 'ERR_BAD_REQUEST'
        assert error.response.data == {'message': 'Customer not found'}
        assert client.in_flight() == []


class TestFailures:

    def test_server_error(self, make_client):
        client = make_client(FakeSession(lambda call: FakeResponse(500, {'message': 'Internal server error'})))
        with pytest.raises(ApiError) as exc_info:
            client.delete('/customers/c1')
        assert exc_info.value.code == 'ERR_BAD_RESPONSE'
        assert exc_info.value.message == 'Request failed with status code 500'

    def test_timeout(self, make_client):
        def responder(call):
            raise requests.exceptions.ConnectTimeout('timed out')

        client = make_client(FakeSession(responder))
        with pytest.raises(ApiError) as exc_info:
            client.get('/customers')
        assert exc_info.value.code == 'ECONNABORTED'
        assert exc_info.value.response is None
        assert exc_info.value.request == {'method': 'get', 'url': '/customers'}

    def test_unreachable_server(self, make_client):
        def responder(call):
            raise requests.exceptions.ConnectionError('refused')

        client = make_client(FakeSession(responder))
        with pytest.raises(ApiError) as exc_info:
            client.get('/customers')
        assert exc_info.value.code == 'ERR_NETWORK'
