# Configuration for the tests.
# Use `py.test` to run the tests.

# (This file needs to be in or above the directory where py.test is called)

import os

import pytest

def pytest_addoption(parser):
    group = parser.getgroup("pkmsave")
    group.addoption("--fixture-dir", action="store", default=None,
        help="Directory of real save files (default: $PKMSAVE_FIXTURE_DIR; if neither is given, those tests are skipped)")
    group.addoption("--all", action="store_true", default=False,
        help="Run all tests, even those that take a lot of time")

def pytest_configure(config):
    config.addinivalue_line("markers",
        "slow: searches every record key; only run with --all")

def pytest_runtest_setup(item):
    if 'slow' in item.keywords and not item.config.getvalue('all'):
        pytest.skip("skipping slow tests")

@pytest.fixture(scope="session")
def fixture_dir(request):
    fixture_dir = (request.config.getvalue("fixture_dir")
                   or os.environ.get('PKMSAVE_FIXTURE_DIR'))
    if not fixture_dir or not os.path.isdir(fixture_dir):
        raise pytest.skip("Save file fixtures unavailable")
    return fixture_dir
