"""Scrape, normalize, export and analysis pipeline."""
