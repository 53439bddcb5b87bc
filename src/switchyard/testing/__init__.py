"""Test utilities for switchyard applications::

    from switchyard.testing import Recorder, TestClient
"""

from switchyard.testing.client import TestClient
from switchyard.testing.recording import Recorder

__all__ = ["Recorder", "TestClient"]
