"""Newsletter persistence, rendering and the command line entry point."""

__all__ = ["export_manager", "html_generator", "newsletter_exporter"]
