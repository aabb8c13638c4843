"""Tkinter user interface for treepatch."""
