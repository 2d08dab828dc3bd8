"""
vidshare
Read-model query composition and cross-entity consistency core
for a social video sharing backend
"""

__version__ = "0.1.0"
