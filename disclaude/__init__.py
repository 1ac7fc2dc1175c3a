"""Disclaude: drive the Claude Code CLI from chat conversations."""

__version__ = "0.1.0"
