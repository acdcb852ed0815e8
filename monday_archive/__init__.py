"""Archive monday.com boards into local JSON documents and asset files."""

__version__ = "0.1.0"
