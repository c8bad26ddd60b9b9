"""ripcheck - audit a music library for rip boundary defects.

Finds leftover silence, over-aggressive clipping and truncated tracks at the
start and end of every track, and trims the fixable ones in place without
re-encoding.
"""

__version__ = "1.0.0"
