"""Test package for retail-radar.

This package contains:
- Unit tests for distance, classification, clustering and summaries
- Insight, source and configuration tests with mocked HTTP
- API tests (test_actions.py)
- Test configuration (conftest.py)
"""
