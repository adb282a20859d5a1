"""Model tests: diagram components, export payloads and validation helpers."""
