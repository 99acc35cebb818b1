"""Agricultural remote-sensing acquisition and fusion engine.

Turns a user-drawn field polygon into a canonical region, acquires
optical (Sentinel-2), radar (Sentinel-1) and climate-reanalysis (ERA5)
observations for it, normalises them into one observation model,
classifies data quality, derives vegetation and weather alerts, and
keeps a continuously refreshed per-region observation store.
"""

__version__ = "0.1.0"
