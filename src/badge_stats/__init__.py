"""badge-stats: GitHub activity statistics rendered as SVG badges."""

__version__ = "0.1.0"
