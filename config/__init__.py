"""Packaged configuration defaults and mapping rules."""
