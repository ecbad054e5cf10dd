"""Social media backend: accounts and short text messages over FastAPI."""
