"""Lyric engine services: parsing, sources, resolution, line lookup, batch downloads."""
