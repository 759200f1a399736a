"""fusextractor: resilient batch extraction of Fusarium study metadata."""

from fusextractor.version import __version__

__all__ = ["__version__"]
