"""logsift - extract anomalies from log files by comparing them with a baseline."""

from logsift.__version__ import __version__


__all__ = ['__version__']
