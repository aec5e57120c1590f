"""Curses UI: the session tree, its sidebar and the hosting app."""
