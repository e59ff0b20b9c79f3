"""Session lifecycle and tutor recommendation core for a peer tutoring platform."""

__version__ = "0.1.0"
