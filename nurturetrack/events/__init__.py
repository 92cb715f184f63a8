"""
Structured extraction for baby-care voice notes.

Design intent:
- The chat model drafts JSON; deterministic code owns the final schema.
- Keep prompt text, time anchoring, and follow-up rules independently testable.
"""
