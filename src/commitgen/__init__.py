"""commitgen - AI-powered commit message generator."""

__version__ = "0.1.0"
