# vnshelf - local visual novel library catalog
# Scans library directories, keeps the SQLite catalog in sync and enriches new
# entries with VNDB metadata.

__version__ = "0.3.0"
