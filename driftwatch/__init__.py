"""Building blocks for detecting, reporting and alerting on configuration drift."""

__version__ = "0.1.0"