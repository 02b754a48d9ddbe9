"""Shared pytest configuration and fixtures for the explorer adapter test suite."""

import sys
from pathlib import Path

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "subprocess: mark test as spawning real Python subprocesses"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--skip-subprocess",
        action="store_true",
        default=False,
        help="Skip tests that spawn real Python subprocesses",
    )


def pytest_collection_modifyitems(config, items):
    """Skip subprocess tests when --skip-subprocess is specified."""
    if not config.getoption("--skip-subprocess"):
        return

    skip_subprocess = pytest.mark.skip(reason="--skip-subprocess given")
    for item in items:
        if "subprocess" in item.keywords:
            item.add_marker(skip_subprocess)


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def sample_project(tmp_path) -> Path:
    """Create a small project with one passing and one failing test file.

    Each test file is a plain script so the default test command can be
    replaced by ``python`` and the exit status decides the outcome.
    """
    project = tmp_path / "project"
    (project / "tests" / "unit").mkdir(parents=True)
    (project / "src").mkdir()

    (project / "tests" / "test_passing.py").write_text("import sys\nprint('ok')\nsys.exit(0)\n")
    (project / "tests" / "unit" / "test_failing.py").write_text(
        "import sys\nprint('assertion failed: 1 != 2')\nsys.exit(1)\n"
    )
    (project / "src" / "module.py").write_text("VALUE = 1\n")
    (project / "tests" / "helpers.py").write_text("")
    return project
