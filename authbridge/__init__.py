"""
Authentication bridge for FastAPI applications.

Binds externally supplied identity clients (OAuth, CAS, SAML, ...) to the
request lifecycle: session identifiers, profile storage, the callback
handshake and logout.

Usage:
    from authbridge.main import create_app

    app = create_app(clients=[MyOAuthClient()])
"""

__version__ = "1.0.0"
