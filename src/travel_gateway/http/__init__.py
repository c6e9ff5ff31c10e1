"""HTTP clients for remote travel providers."""

from travel_gateway.http.client import AmadeusClient, AuthenticationError

__all__ = ["AmadeusClient", "AuthenticationError"]
