"""
Helper utility functions.
"""

import os


def ensure_dir(path: str):
    """
    Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
    """
    if path:
        os.makedirs(path, exist_ok=True)
