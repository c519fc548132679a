"""Core building blocks: settings, exceptions, database and service bases."""
