"""uberbuild: cached Scala IDE release pipeline."""

from uberbuild.version import __version__

__all__ = ["__version__"]
