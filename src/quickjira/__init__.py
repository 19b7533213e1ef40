"""quickjira - search, create and open Jira tickets from the terminal."""

__version__ = "0.1.0"
