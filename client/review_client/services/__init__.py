"""
Review client services.

Submodules:
- review: session engine and its collaborators
"""
