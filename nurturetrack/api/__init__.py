"""
API orchestration boundary for the NurtureTrack backend.

Design intent:
- Expose one upload endpoint plus liveness probes.
- Keep request validation explicit and failure modes predictable.
"""
