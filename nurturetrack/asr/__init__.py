"""
Speech-to-text boundary for NurtureTrack.

Design intent:
- Keep transport details behind a provider interface.
- Hand back plain text exactly as the service produced it.
"""
