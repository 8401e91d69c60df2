"""Google Photos Takeout migrator.

Builds a de-duplicated, year-organized library (``ALL_PHOTOS``) and an album
mirror (``ALBUMS``) from one or more Takeout exports, with timestamps taken
from the JSON sidecars written into every copy.
"""
