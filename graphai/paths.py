"""
Where the editor keeps its files.

    <app dir>/config.json             settings (see graphai.config)
    <app dir>/db/saved_graphs.json    saved graphs (see graphai.storage)

The app dir is GRAPHAI_HOME when set, the executable's folder for a frozen
(PyInstaller) build, and the project root otherwise.
"""

import os
import sys
from pathlib import Path

SAVED_GRAPHS_FILE = "saved_graphs.json"


def get_app_dir() -> Path:
    home = os.environ.get("GRAPHAI_HOME")
    if home:
        return Path(home).expanduser()
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    # graphai/ sits directly under the project root
    return Path(__file__).resolve().parent.parent


def get_db_dir() -> Path:
    return get_app_dir() / "db"


def get_config_path() -> Path:
    return get_app_dir() / "config.json"


def get_saved_graphs_path() -> Path:
    return get_db_dir() / SAVED_GRAPHS_FILE

