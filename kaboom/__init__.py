"""Manage an on-disk Atom feed's entries."""

APP_NAME = "kaboom"
APP_HOMEPAGE = "https://github.com/klardotsh/kaboom"
__version__ = "0.3.0"
