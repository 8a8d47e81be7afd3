"""Resilient UI automation for the wallet app: executor, classifier, drivers and reporting."""

__version__ = "0.1.0"
