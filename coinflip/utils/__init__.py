"""
coinflip.utils
--------------

Light helpers shared across the coin flip components (hashing, hex/bytes).
Nothing is imported eagerly here.
"""

__all__: list[str] = []
