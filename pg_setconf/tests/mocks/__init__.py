"""
Mock components for testing pg_setconf.

These stand in for the live server so the editor, verifier and CLI
can be exercised without a database or a postmaster to signal.
"""

from .mock_gateway import MockGateway, MockConnection, MockCursor, FakePgError
from .mock_service import RecordingKill, FakeClock

__all__ = [
    'MockGateway',
    'MockConnection',
    'MockCursor',
    'FakePgError',
    'RecordingKill',
    'FakeClock',
]
