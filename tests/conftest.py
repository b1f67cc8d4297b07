"""Root-level pytest fixtures for the rads_combine test suite.

Provides shared configuration fixtures following the Pydantic-based
configuration layers. Tests use these fixtures instead of raw dict configs.
"""

import pytest
from pathlib import Path
import tempfile
import shutil

from rads_combine.schemas import ParamConfig, UserConfig, resolve_config


# =============================================================================
# Configuration Fixtures (Pydantic-based)
# =============================================================================

@pytest.fixture
def param_config():
    """Expert configuration with all defaults.

    Use this as the base for all test configs. Override specific values
    using make_config or by creating custom UserConfig instances.
    """
    return ParamConfig()


@pytest.fixture
def internal_config(param_config):
    """Fully validated runtime configuration (no overrides, no destination).

    Use this when tests don't care about specific config values and never
    write pass files.
    """
    return resolve_config(param_config, None, None)


@pytest.fixture
def make_config(param_config, dest_dir):
    """Factory fixture for creating custom test configs.

    Returns a callable that accepts UserConfig-compatible kwargs. The
    destination defaults to the ``dest_dir`` fixture.

    Examples
    --------
    >>> def test_keep(make_config):
    ...     config = make_config(max_records=100)
    ...     assert config.combiner.max_records == 100
    """
    def _make(**user_overrides):
        """Create InternalConfig with user overrides."""
        user_overrides.setdefault("dest_dir", str(dest_dir))
        user = UserConfig(**user_overrides)
        return resolve_config(param_config, user, None)

    return _make


# =============================================================================
# Directory Fixtures
# =============================================================================

@pytest.fixture
def temp_dir():
    """Temporary directory that is cleaned up after test."""
    d = tempfile.mkdtemp()
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def dest_dir(temp_dir):
    """Destination directory for pass files."""
    d = temp_dir / "passes"
    d.mkdir()
    return d


@pytest.fixture
def granule_dir(temp_dir):
    """Directory holding fake input granules."""
    d = temp_dir / "granules"
    d.mkdir()
    return d
