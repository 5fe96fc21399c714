"""Repo Analyzer API: report uploads and repository analysis jobs."""

__version__ = "0.1.0"
