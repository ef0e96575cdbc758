"""figlink: resilient access to the Figma design-file API."""

__version__ = "0.1.0"
