"""Simple version check for the package.

Verifies that the ``__version__`` attribute matches the expected release
string."""

import importlib
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

composition_generator = importlib.import_module("composition_generator")


def test_version_matches():
    """Ensure ``composition_generator.__version__`` exposes the release version."""
    assert composition_generator.__version__ == "0.1.0"
