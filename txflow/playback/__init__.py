"""
Playback Layer

Replay cursor, injectable timers and the progress summary.
"""
