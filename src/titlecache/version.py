"""Version information for :mod:`titlecache`."""

VERSION = "0.1.0"
