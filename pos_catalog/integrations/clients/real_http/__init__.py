"""
Real HTTP integration clients.

These clients communicate with the real remote catalog source:
- catalog_source: full catalog download (single-call, paged, sheet shapes)
- oauth_token: bearer credential providers

Important:
- Must implement the same interfaces as the mock clients
- Must return data shaped according to pos_catalog/integrations/contracts/*

Switching:
The selection of mock vs real clients happens in pos_catalog/api/main.py only.
"""

from .catalog_source import HttpCatalogFetcher
from .oauth_token import OAuthRefreshTokenProvider, StaticTokenProvider, credentials_from_config

__all__ = ["HttpCatalogFetcher", "OAuthRefreshTokenProvider", "StaticTokenProvider", "credentials_from_config"]
