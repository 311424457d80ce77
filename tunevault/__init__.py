"""
TuneVault - selective backup and restore for a music player's app data.

Exports a chosen subset of the player's persisted stores into one
versioned JSON snapshot and restores it back:
- Preferences, favorites, lyrics cache, search history, transition rules
- Per-section selection on both export and restore
- Forward-compatible, version-gated snapshot format
"""

__version__ = "0.1.0"
__author__ = "TuneVault Contributors"
