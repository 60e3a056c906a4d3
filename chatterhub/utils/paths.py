"""
Path utilities for the ChatterHub data directory.
"""
import os
from pathlib import Path

def get_chatterhub_home() -> Path:
    """Get the ChatterHub home directory, creating if necessary."""
    # Allow override via environment variable
    if 'CHATTERHUB_HOME' in os.environ:
        home = Path(os.environ['CHATTERHUB_HOME'])
    else:
        home = Path.home() / '.chatterhub'

    home.mkdir(parents=True, exist_ok=True)
    return home

def get_db_dir(home: Path) -> Path:
    """Directory holding one JSON file per collection."""
    return home / 'db'
