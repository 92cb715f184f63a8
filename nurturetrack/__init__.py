"""
NurtureTrack backend package.

Design intent:
- Turn one spoken baby-care note into one structured log record.
- Keep domain modules (asr/events/pipeline) independent from the HTTP layer.
"""
