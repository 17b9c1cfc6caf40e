import copy

# Demo settings until per-user settings are persisted
USER_SETTINGS = {
    'user': {
        'id': 1,
        'firstName': 'John',
        'lastName': 'Doe',
        'email': 'john.doe@example.com',
        'phone': '+1 (555) 123-4567',
        'jobTitle': 'Sales Manager',
        'avatar': 'https://randomuser.me/api/portraits/men/32.jpg',
        'timezone': 'America/New_York',
    },
    'company': {
        'name': 'Acme Logistics',
        'website': 'www.acmelogistics.com',
        'industry': 'Transportation',
        'taxId': 'US123456789',
        'regNumber': 'B12345',
        'foundedYear': 2010,
        'address': {
            'street': '123 Commerce St',
            'city': 'New York',
            'state': 'NY',
            'zip': '10001',
            'country': 'USA',
        },
    },
    'interface': {
        'theme': 'light',
        'language': 'en',
        'compactMode': False,
        'tableRows': 10,
        'dateFormat': 'MM/DD/YYYY',
    },
    'notifications': {
        'email': {
            'newCustomer': True,
            'newOrder': True,
            'orderStatus': True,
            'paymentReceived': True,
            'invoiceDue': True,
            'systemUpdates': False,
        },
        'sms': {
            'newOrder': True,
            'orderStatus': False,
            'paymentReceived': False,
        },
        'quietHours': {
            'enabled': True,
            'start': '22:00',
            'end': '07:00',
        },
    },
    'dashboard': {
        'showRevenue': True,
        'showBookings': True,
        'showCustomers': True,
        'layout': 'default',
    },
    'security': {
        'twoFactorEnabled': True,
        'lastPasswordChange': '2023-12-15T00:00:00.000Z',
        'sessions': [
            {
                'device': 'Chrome on Windows',
                'location': 'New York, USA',
                'lastActive': '2024-03-28T14:35:22.000Z',
            },
            {
                'device': 'Mobile App on iOS',
                'location': 'Boston, USA',
                'lastActive': '2024-03-27T18:12:45.000Z',
            },
        ],
    },
}


class SettingsService:
    @staticmethod
    def get_user_settings():
        return copy.deepcopy(USER_SETTINGS)
