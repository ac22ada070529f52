import pytest


def pytest_addoption(parser):
    """Register the opt-in flag for tests that drive a real browser against Google."""

    # Helper to safely add options without causing conflicts if already registered
    def safe_addoption(*args, **kwargs):
        try:
            parser.addoption(*args, **kwargs)
        except ValueError:
            # Option already registered, skip
            pass

    safe_addoption("--e2e", action="store_true", help="Run end-to-end tests (launches Chromium, hits google.com)")
    safe_addoption("--query", action="store", default="playwright python", help="Query used by end-to-end tests")


def pytest_collection_modifyitems(config, items):
    if config.getoption("--e2e"):
        return

    skip_e2e = pytest.mark.skip(reason="needs --e2e")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)
