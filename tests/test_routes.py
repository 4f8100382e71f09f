"""Tests for the map view and short-link redirect routes."""
import logging

from app import is_absolute_url


class TestMapRoutes:

    def test_public_version_renders(self, client):
        response = client.get('/general')

        assert response.status_code == 200
        assert b'<title>General</title>' in response.data
        assert b'window.mapConfig' in response.data

    def test_root_serves_general(self, client):
        response = client.get('/')

        assert response.status_code == 200
        assert b'<title>General</title>' in response.data

    def test_slug_is_case_insensitive(self, client, login):
        login('alice')
        response = client.get('/Planning/HIGHWAYS')

        assert response.status_code == 200
        assert b'<title>Highways</title>' in response.data

    def test_unknown_version(self, client):
        response = client.get('/no/such/map')

        assert response.status_code == 404
        assert b'Map not found' in response.data

    def test_disabled_version(self, client):
        response = client.get('/archive')

        assert response.status_code == 200
        assert b'Archive is unavailable' in response.data

    def test_redirected_version(self, client):
        response = client.get('/moved')

        assert response.status_code == 302
        assert response.headers['Location'] == 'https://elsewhere.example.com/map'

    def test_malformed_redirect_is_ignored(self, client):
        response = client.get('/bad-redirect')

        assert response.status_code == 200
        assert b'<title>Bad redirect</title>' in response.data

    def test_anonymous_user_is_challenged(self, client):
        response = client.get('/planning/highways')

        assert response.status_code == 302
        assert response.headers['Location'].startswith('/account/login?next=')
        assert '%2Fplanning%2Fhighways' in response.headers['Location']

    def test_signed_in_user_without_grant_is_forbidden(self, client, login):
        login('bob')
        response = client.get('/planning/highways')

        assert response.status_code == 403
        assert b'You do not have permission to view Highways' in response.data

    def test_granted_user_sees_inherited_help_url(self, client, login):
        login('alice')
        response = client.get('/planning/highways')

        assert response.status_code == 200
        assert b'https://help.example.com/maps' in response.data

    def test_version_without_projections_is_a_server_error(self, client):
        response = client.get('/empty')

        assert response.status_code == 500
        assert b'This map is not configured correctly' in response.data
        assert b'No projections were defined' not in response.data

    def test_server_error_detail_is_logged(self, client, caplog):
        with caplog.at_level(logging.ERROR, logger='app'):
            client.get('/empty')

        assert any('No projections were defined for version Empty' in r.getMessage()
                   for r in caplog.records)

    def test_map_services_token_absent_by_default(self, client, login):
        login('alice', id_token='token-123')

        assert b'token-123' not in client.get('/general').data


class TestMapServicesAuthentication:

    def test_token_attached_when_enabled(self, app_factory):
        app = app_factory({
            'AUTHENTICATE_WITH_MAP_SERVICES': True,
            'MAP_SERVICES_ACCESS_URL': 'https://services.example.com/auth',
        })
        client = app.test_client()
        with client.session_transaction() as flask_session:
            flask_session['user_id'] = 'alice'
            flask_session['id_token'] = 'token-123'

        body = client.get('/general').data
        assert b'https://services.example.com/auth' in body
        assert b'token-123' in body

    def test_enabled_without_url_attaches_nothing(self, app_factory):
        app = app_factory({'AUTHENTICATE_WITH_MAP_SERVICES': True})
        client = app.test_client()
        with client.session_transaction() as flask_session:
            flask_session['id_token'] = 'token-123'

        assert b'token-123' not in client.get('/general').data


class TestShortLinkRedirect:

    def test_known_short_link_redirects(self, client):
        response = client.get('/s/abc123')

        assert response.status_code == 302
        assert response.headers['Location'] == 'https://maps.example.com/general'

    def test_unknown_short_link(self, client):
        response = client.get('/s/missing')

        assert response.status_code == 404
        assert b'Link not found' in response.data

    def test_malformed_stored_url_is_not_followed(self, client):
        response = client.get('/s/broken')

        assert response.status_code == 404


class TestIsAbsoluteUrl:

    def test_accepts_http_and_https(self):
        assert is_absolute_url('https://maps.example.com/a')
        assert is_absolute_url('http://maps.example.com')

    def test_rejects_relative_and_empty(self):
        assert not is_absolute_url('')
        assert not is_absolute_url(None)
        assert not is_absolute_url('/general')
        assert not is_absolute_url('not a url')
        assert not is_absolute_url('javascript:alert(1)')
