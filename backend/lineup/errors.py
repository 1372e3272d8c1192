# backend/lineup/errors.py


class LineupError(Exception):
    """Base class for errors the controller reports to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StoreError(LineupError):
    """A read or write against the relational store failed."""


class UnsupportedProviderError(LineupError):
    pass


class AuthenticationError(LineupError):
    pass


class OAuthExchangeError(LineupError):
    """The identity provider rejected the authorization code."""
