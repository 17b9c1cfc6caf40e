from crm_backend.services.demo_fixtures import DEMO_ID, fallback_customer, get_fixture


class TestFixturesDisabled:

    def test_lookup_returns_none(self, app):
        assert get_fixture('customer', DEMO_ID) is None
        assert fallback_customer('c1') is None

    def test_demo_id_is_an_ordinary_missing_row(self, client):
        assert client.get(f'/api/customers/{DEMO_ID}').status_code == 404
        assert client.get(f'/api/bookings/{DEMO_ID}').status_code == 404
        assert client.get(f'/api/invoices/{DEMO_ID}').status_code == 404


class TestFixturesEnabled:

    def test_fixture_copies_are_independent(self, demo_app):
        first = get_fixture('customer', DEMO_ID)
        first['company_name'] = 'Changed'
        assert get_fixture('customer', DEMO_ID)['company_name'] == 'Test Company'

    def test_get_returns_fixture_payloads(self, demo_client):
        assert demo_client.get(f'/api/customers/{DEMO_ID}').get_json()['company_name'] == 'Test Company'
        assert demo_client.get(f'/api/bookings/{DEMO_ID}').get_json()['booking_number'] == 'BK-0001'
        invoice = demo_client.get(f'/api/invoices/{DEMO_ID}').get_json()
        assert invoice['items'][0]['description'] == 'Shipping Service'

    def test_update_echoes_payload(self, demo_client):
        response = demo_client.put(f'/api/customers/{DEMO_ID}', json={'city': 'Lisbon'})
        assert response.status_code == 200
        assert response.get_json()['city'] == 'Lisbon'
        status = demo_client.patch(f'/api/bookings/{DEMO_ID}', json={'status': 'completed'}).get_json()
        assert status['booking'] == {'id': DEMO_ID, 'status': 'completed'}

    def test_delete_conflict_test_cases(self, demo_client):
        assert demo_client.delete(f'/api/customers/{DEMO_ID}').status_code == 200
        conflict = demo_client.delete(f'/api/customers/{DEMO_ID}?test_case=has_bookings')
        assert conflict.status_code == 409
        assert conflict.get_json()['error'] == 'FOREIGN_KEY_CONSTRAINT'
        assert demo_client.delete(f'/api/bookings/{DEMO_ID}?test_case=has_invoices').status_code == 409
        assert demo_client.delete(f'/api/bookings/{DEMO_ID}?test_case=has_bookings').status_code == 200

    def test_c1_falls_back_outside_production(self, demo_client):
        body = demo_client.get('/api/customers/c1').get_json()
        assert body['company_name'] == 'Global Logistics Inc.'

    def test_no_fallback_in_production(self, demo_app):
        demo_app.config['ENV_NAME'] = 'production'
        assert fallback_customer('c1') is None
