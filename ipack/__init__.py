"""ipack: local versioned package registry for npm projects."""

__version__ = "0.3.0"
