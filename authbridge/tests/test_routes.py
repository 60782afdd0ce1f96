"""
Integration Tests for the Authentication Routes
===============================================

Tests for authbridge/auth/routes.py and authbridge/main.py through
FastAPI's TestClient.

Test Coverage:
--------------
1. Login -> callback -> profile -> logout with a cookie session
2. Callback renders 401/307/200 client actions and failure pages
3. Login target and logout redirect allow-lists
4. Header session identifier beats the cookie and cannot alias other keys
5. Health/root endpoints and configuration errors

Run tests:
----------
    pytest authbridge/tests/test_routes.py -v
"""

from unittest.mock import patch

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from authbridge.main import create_app

from fakes import FakeIdentityClient, make_settings


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def mock_settings():
    """Settings with an allow-list for post-logout redirects"""
    return make_settings(
        LOGOUT_URL_PATTERN=r"^https://example\.com/.*$",
        DEFAULT_LOGOUT_URL="/",
    )


@pytest.fixture
def app(mock_settings, identity_client, cache):
    """Create test FastAPI application"""
    return create_app(mock_settings, clients=[identity_client], cache=cache)


@pytest.fixture
def client(app):
    """Create test client"""
    return TestClient(app)


@pytest.fixture
def fixed_session_id():
    """New sessions get the identifier S1"""
    with patch("authbridge.auth.session.generate_session_id", return_value="S1"):
        yield "S1"


def login(client, target="/dashboard"):
    return client.get(
        "/auth/login/clientX",
        params={"target": target},
        follow_redirects=False,
    )


# ============================================================================
# Full Flow Tests
# ============================================================================

@pytest.mark.asyncio
async def test_login_callback_restores_requested_url(client, cache, fixed_session_id):
    """
    A fresh browser session gets S1, the requested URL is saved for clientX
    and the callback reads it back under S1:clientX:requestedUrl.
    """
    response = login(client)

    assert response.status_code == status.HTTP_302_FOUND
    assert response.headers["location"].startswith(FakeIdentityClient.provider_url)
    assert await cache.get("S1:clientX:requestedUrl") == "/dashboard"
    assert await cache.get("S1:requestedUrl") is None

    response = client.get(
        "/auth/callback",
        params={"client_name": "clientX"},
        follow_redirects=False,
    )

    assert response.status_code == status.HTTP_302_FOUND
    assert response.headers["location"] == "/dashboard"
    assert (await cache.get("S1")).id == "user-1"


def test_profile_endpoint_after_login(client, fixed_session_id):
    login(client)
    client.get("/auth/callback", params={"client_name": "clientX"}, follow_redirects=False)

    response = client.get("/auth/profile")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["authenticated"] is True
    assert data["profile"]["id"] == "user-1"
    assert data["profile"]["client_name"] == "clientX"


def test_profile_endpoint_requires_session(client):
    response = client.get("/auth/profile")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == "Not authenticated"
    assert response.headers["www-authenticate"] == "Session"


def test_logout_removes_profile(client, fixed_session_id):
    login(client)
    client.get("/auth/callback", params={"client_name": "clientX"}, follow_redirects=False)

    response = client.get("/auth/logout")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "logged_out"}
    assert client.get("/auth/profile").status_code == status.HTTP_401_UNAUTHORIZED


def test_callback_accepts_form_post(client, identity_client, fixed_session_id):
    identity_client.credentials_parameter = "code"
    login(client)

    response = client.post(
        "/auth/callback",
        data={"client_name": "clientX", "code": "abc"},
        follow_redirects=False,
    )

    assert response.status_code == status.HTTP_302_FOUND
    assert response.headers["location"] == "/dashboard"
    assert identity_client.last_credentials == "abc"


def test_callback_without_requested_url_goes_to_default(client):
    response = client.get(
        "/auth/callback",
        params={"client_name": "clientX"},
        follow_redirects=False,
    )

    assert response.status_code == status.HTTP_302_FOUND
    assert response.headers["location"] == "/"


# ============================================================================
# Session Identifier Precedence
# ============================================================================

def test_header_session_beats_cookie(client, fixed_session_id):
    """The cookie session S1 is authenticated; header S2 is not"""
    login(client)
    client.get("/auth/callback", params={"client_name": "clientX"}, follow_redirects=False)

    assert client.get("/auth/profile").status_code == status.HTTP_200_OK

    response = client.get("/auth/profile", headers={"X-Session-Id": "S2"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_header_session_id_cannot_address_other_entries(app, client, fixed_session_id):
    """S1:clientX:requestedUrl holds a saved URL, not a profile"""
    login(client)
    client.get("/auth/callback", params={"client_name": "clientX"}, follow_redirects=False)

    response = TestClient(app).get(
        "/auth/profile", headers={"X-Session-Id": "S1:clientX:requestedUrl"}
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_stateless_caller_uses_header_only(client, cache):
    login_response = client.get(
        "/auth/login/clientX",
        params={"target": "/api/reports"},
        headers={"X-Session-Id": "H1"},
        follow_redirects=False,
    )
    assert login_response.status_code == status.HTTP_302_FOUND

    response = client.get(
        "/auth/callback",
        params={"client_name": "clientX"},
        headers={"X-Session-Id": "H1"},
        follow_redirects=False,
    )

    assert response.headers["location"] == "/api/reports"
    assert await cache.get("H1") is not None
    assert client.get("/auth/profile", headers={"X-Session-Id": "H1"}).status_code == status.HTTP_200_OK


# ============================================================================
# Client Action Rendering
# ============================================================================

def test_callback_renders_401_action(client, identity_client):
    identity_client.action = (401, "", {"WWW-Authenticate": 'Basic realm="test"'})

    response = client.get("/auth/callback", params={"client_name": "clientX"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.headers["www-authenticate"] == 'Basic realm="test"'


def test_callback_renders_307_action(client, identity_client):
    identity_client.action = (307, "", {"Location": "https://idp.example.com/login"})

    response = client.get(
        "/auth/callback",
        params={"client_name": "clientX"},
        follow_redirects=False,
    )

    assert response.status_code == status.HTTP_307_TEMPORARY_REDIRECT
    assert response.headers["location"] == "https://idp.example.com/login"


def test_callback_renders_200_action_as_html(client, identity_client):
    form = "<form method='post' action='https://idp.example.com/saml'></form>"
    identity_client.action = (200, form, {})

    response = client.get("/auth/callback", params={"client_name": "clientX"})

    assert response.status_code == status.HTTP_200_OK
    assert response.text == form
    assert response.headers["content-type"].startswith("text/html")


def test_callback_unsupported_action_renders_error_page(client, identity_client):
    identity_client.action = (302, "", {"Location": "https://elsewhere.example.com"})

    response = client.get(
        "/auth/callback",
        params={"client_name": "clientX"},
        follow_redirects=False,
    )

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert "Authentication Error" in response.text
    assert "location" not in response.headers


def test_callback_unknown_client_renders_error_page(client):
    response = client.get("/auth/callback", params={"client_name": "unknown"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert "Authentication Error" in response.text


# ============================================================================
# Login Endpoint Tests
# ============================================================================

def test_login_unknown_client_returns_404(client):
    response = client.get("/auth/login/unknown", follow_redirects=False)

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert "unknown" in response.json()["detail"]


def test_login_renders_success_page(client, identity_client):
    identity_client.login_page = "<form id='post-binding'></form>"

    response = client.get("/auth/login/clientX")

    assert response.status_code == status.HTTP_200_OK
    assert "post-binding" in response.text


def test_login_without_target_saves_login_uri(client, cache, fixed_session_id):
    login_response = client.get("/auth/login/clientX", follow_redirects=False)
    assert login_response.status_code == status.HTTP_302_FOUND

    response = client.get(
        "/auth/callback",
        params={"client_name": "clientX"},
        follow_redirects=False,
    )

    assert response.headers["location"] == "/auth/login/clientX"


@pytest.mark.asyncio
async def test_login_with_off_site_target_ends_at_default_success_url(client, cache, fixed_session_id):
    """The callback never redirects to a host other than this service"""
    login_response = login(client, target="https://evil.com/phish")
    assert login_response.status_code == status.HTTP_302_FOUND
    assert await cache.get("S1:clientX:requestedUrl") is None

    response = client.get(
        "/auth/callback",
        params={"client_name": "clientX"},
        follow_redirects=False,
    )

    assert response.status_code == status.HTTP_302_FOUND
    assert response.headers["location"] == "/"


def test_login_with_protocol_relative_target_ends_at_default_success_url(client, fixed_session_id):
    login(client, target="//evil.com/phish")

    response = client.get(
        "/auth/callback",
        params={"client_name": "clientX"},
        follow_redirects=False,
    )

    assert response.headers["location"] == "/"


def test_login_without_clients_returns_configuration_error(mock_settings, cache):
    client = TestClient(create_app(mock_settings, cache=cache))

    response = client.get("/auth/login/clientX", follow_redirects=False)

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    data = response.json()
    assert data["error"] == "configuration_error"
    assert data["detail"] == "MissingClientConfiguration"


# ============================================================================
# Logout Redirect Allow-list
# ============================================================================

def test_logout_redirect_to_allow_listed_url(client):
    response = client.get(
        "/auth/logout/redirect",
        params={"url": "https://example.com/home"},
        follow_redirects=False,
    )

    assert response.status_code == status.HTTP_302_FOUND
    assert response.headers["location"] == "https://example.com/home"


def test_logout_redirect_rejects_other_hosts(client):
    response = client.get(
        "/auth/logout/redirect",
        params={"url": "https://evil.com/x"},
        follow_redirects=False,
    )

    assert response.status_code == status.HTTP_302_FOUND
    assert response.headers["location"] == "/"


def test_logout_redirect_rejects_repeated_parameter(client):
    response = client.get(
        "/auth/logout/redirect?url=https://example.com/a&url=https://example.com/b",
        follow_redirects=False,
    )

    assert response.headers["location"] == "/"


def test_logout_redirect_removes_profile(client, fixed_session_id):
    login(client)
    client.get("/auth/callback", params={"client_name": "clientX"}, follow_redirects=False)

    client.get("/auth/logout/redirect", follow_redirects=False)

    assert client.get("/auth/profile").status_code == status.HTTP_401_UNAUTHORIZED


# ============================================================================
# System Endpoint Tests
# ============================================================================

def test_health_check(client):
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "ok"
    assert data["service"] == "authbridge"


def test_root_lists_endpoints(client):
    response = client.get("/")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["endpoints"]["callback"] == "/auth/callback"


def test_lifespan_starts_and_stops(app):
    with TestClient(app) as client:
        assert client.get("/health").status_code == status.HTTP_200_OK


def test_cors_enabled_when_origins_configured(cache, identity_client):
    settings = make_settings(ALLOWED_ORIGINS="https://app.example.com")
    client = TestClient(create_app(settings, clients=[identity_client], cache=cache))

    response = client.get("/health", headers={"Origin": "https://app.example.com"})

    assert response.headers["access-control-allow-origin"] == "https://app.example.com"
