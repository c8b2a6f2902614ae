"""
depupdater - dependency extraction and update branch automation
"""

__version__ = "0.1.0"

from .core import RepositoryOrchestrator
from .errors import UpdaterError

__all__ = ["RepositoryOrchestrator", "UpdaterError"]
