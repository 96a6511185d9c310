"""relprep - prepare release branches from a version file."""

__version__ = "0.1.0"
