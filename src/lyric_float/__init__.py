"""lyric-float -- synced lyric resolution for whatever is playing."""

__version__ = "0.3.0"
