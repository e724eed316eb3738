"""
Word Review Client

Client-side engine for spaced repetition vocabulary review sessions
backed by a remote review service.
"""

__version__ = "0.1.0"
