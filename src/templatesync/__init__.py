"""
templatesync -- keep implementation projects in step with their template.

A template's configuration document is mirrored onto every project that
implements it. Each implementation chooses which fields it keeps local.
"""

import os

__version__ = "0.1.0"

TEMPLATESYNC_HOME = os.environ.get("TEMPLATESYNC_HOME", "~/.templatesync")
