from .common import (
    clean_text,
    clean_text_ws,
    html_to_text,
    parse_datetime_utc,
    sanitize_text,
    truncate_text,
)

__all__ = [
    "clean_text",
    "clean_text_ws",
    "html_to_text",
    "parse_datetime_utc",
    "sanitize_text",
    "truncate_text",
]
