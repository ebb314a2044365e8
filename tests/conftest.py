"""Pytest configuration for tests."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Add the project root to the Python path
# This allows imports like "from services.cache import ..." to work
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

MATHML_NS = "http://www.w3.org/1998/Math/MathML"


@pytest.fixture
def wrap():
    """Wrap MathML body content in a namespaced <math> root."""

    def _wrap(body: str, **attributes: str) -> str:
        attrs = "".join(f' {name}="{value}"' for name, value in attributes.items())
        return f'<math xmlns="{MATHML_NS}"{attrs}>{body}</math>'

    return _wrap
