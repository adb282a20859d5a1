"""Diagram assembly tests: component placement and the fixed edge topology."""
