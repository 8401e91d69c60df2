"""Google Photos Takeout to canonical library migration."""

__version__ = "0.1.0"
