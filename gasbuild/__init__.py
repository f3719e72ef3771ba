"""Build and deploy pipeline for Google Apps Script web apps."""

__version__ = "0.1.0"
