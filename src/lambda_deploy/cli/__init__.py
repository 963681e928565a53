"""Command line interface for lambda-deploy."""
