"""prop-tracker: sports prop watch-list dashboard core."""

__version__ = "2.10.0"
