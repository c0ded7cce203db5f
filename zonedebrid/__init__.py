"""Zone-Téléchargement search and AllDebrid availability checks."""

from zonedebrid.__version__ import __version__

__all__ = ["__version__"]
