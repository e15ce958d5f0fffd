"""VOID MARKET - storefront client with PKCE sign-in."""

__version__ = "1.0.0"
