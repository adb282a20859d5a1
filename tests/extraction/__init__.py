"""
Extraction Tests

Test Modules:
- test_extraction_engine: keyword evidence, confidence, excerpts and synthesis
- test_extraction_backend: LLM backend adapter over a mocked HTTP API
"""
