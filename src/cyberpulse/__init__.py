"""Cybersecurity threat newsletter pipeline."""
