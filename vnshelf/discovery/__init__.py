# Filesystem discovery
from .scanner import GameScanner, extract_title, extract_version, detect_platforms
