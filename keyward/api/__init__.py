"""Web integration for API key authentication."""
