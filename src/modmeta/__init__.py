"""Mod catalog metadata resolution against Modrinth and CurseForge."""

__version__ = "0.1.0"
