"""Utility tests. The OpenRouter client is exercised against respx mocks."""
