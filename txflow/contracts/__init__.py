"""
Contracts Module

Explicit data types exchanged between parsing, layout and playback. No
layer may import implementation details from another layer; they meet
here.

DESIGN PRINCIPLES:
==================
1. All contract types are immutable (frozen dataclasses or enums)
2. Errors are values (Error + ErrorCode), not exceptions
3. Tree structure is index-based (parent_index), never reference-based
"""
