"""echoguard: contextual login trust and content moderation for social backends."""

__version__ = "0.1.0"
