"""BuySoft backend: software deals catalog and admin back office."""

__version__ = "0.1.0"
