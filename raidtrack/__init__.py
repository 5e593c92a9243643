"""RaidTrack Discord bot: SavedVariables ingestion, raid publishing and signups."""

__version__ = "1.0.0"
