"""
SETIQUE: dataset ingestion analysis for a creator-data marketplace.
=================================================================

Uploaded analytics exports are checked before they are listed for sale:
their source platform and schema are detected, personal data is scanned
for and redacted, and a marketplace price is suggested.
"""

from ._version import __version__

__author__ = "SETIQUE Team"
__license__ = "MIT"
