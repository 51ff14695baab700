"""Overriding settings for each environment."""
