"""Core infrastructure for purgectl.

Configuration, XDG paths, run history state, and console theming.
"""
