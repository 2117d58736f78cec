"""buildclean - remove generated build output before a fresh build."""

__version__ = "0.1.0"
