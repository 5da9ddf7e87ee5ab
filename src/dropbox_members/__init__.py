"""Client for the Dropbox "list file members" sharing API."""

__version__ = "0.1.0"
