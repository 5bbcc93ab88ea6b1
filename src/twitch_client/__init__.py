"""Twitch API client.

Request pipeline for the Twitch API family (Helix, Kraken and the OAuth2
endpoints) with credential refresh on authorization failures and a
response-driven rate limiter for the Helix quota.
"""

__version__ = "0.1.0"
