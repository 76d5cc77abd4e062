"""
Tests for the security headers and Content Security Policy added to every response.
"""

import pytest

from app import create_app
from app.extensions import db
from config import Config, TestingConfig


class HeadersTestingConfig(TestingConfig):
    SECURITY_HEADERS = Config.SECURITY_HEADERS
    CONTENT_SECURITY_POLICY = Config.CONTENT_SECURITY_POLICY


@pytest.fixture
def headers_client():
    app = create_app(HeadersTestingConfig)
    with app.app_context():
        db.create_all()
    yield app.test_client()
    with app.app_context():
        db.drop_all()


def test_security_headers(headers_client):
    response = headers_client.get('/api/features/forum')

    expected_headers = {
        'X-Content-Type-Options': 'nosniff',
        'X-Frame-Options': 'SAMEORIGIN',
        'Strict-Transport-Security': 'max-age=31536000; includeSubDomains',
        'Referrer-Policy': 'strict-origin-when-cross-origin',
        'Cross-Origin-Opener-Policy': 'same-origin',
        'Cross-Origin-Resource-Policy': 'same-origin',
    }
    for header_name, expected_value in expected_headers.items():
        assert response.headers.get(header_name) == expected_value, header_name

    assert response.headers.get('Permissions-Policy')


def test_headers_on_error_responses(headers_client):
    response = headers_client.get('/api/does-not-exist')

    assert response.status_code == 404
    assert response.headers.get('X-Content-Type-Options') == 'nosniff'
    assert response.headers.get('Content-Security-Policy')


def test_csp_directives(headers_client):
    csp_header = headers_client.get('/api/features/forum').headers.get('Content-Security-Policy')
    assert csp_header

    directives = {part.strip().split(' ')[0]: part.strip() for part in csp_header.split(';')}
    for directive in ('default-src', 'frame-ancestors', 'base-uri', 'form-action'):
        assert directive in directives

    assert directives['default-src'] == "default-src 'none'"
    assert "'unsafe-inline'" not in csp_header
    assert "'unsafe-eval'" not in csp_header


def test_headers_can_be_disabled(client):
    response = client.get('/api/features/forum')
    assert 'Content-Security-Policy' not in response.headers
