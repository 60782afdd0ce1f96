"""Exceptions raised by the authentication bridge."""

from typing import Optional


class AuthBridgeError(Exception):
    """Base exception for configuration and integration errors"""
    pass


class MissingClientConfiguration(AuthBridgeError):
    """No identity client registry has been configured"""

    def __init__(self, message: str = "No client defined. Pass clients=... to create_app()"):
        super().__init__(message)


class ClientNotFoundError(AuthBridgeError):
    """No identity client matches the requested name"""

    def __init__(self, client_name: Optional[str]):
        self.client_name = client_name
        super().__init__(f"No client found for name: {client_name!r}")


class UnsupportedActionError(AuthBridgeError):
    """An identity client asked for an HTTP response outside the allow-list"""

    def __init__(self, code: Optional[int]):
        self.code = code
        super().__init__(f"Unsupported HTTP action : {code}")
