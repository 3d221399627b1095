"""
Security utilities: filename sanitization and probe logging.
"""
import logging
import re

security_logger = logging.getLogger('security')

DEFAULT_MIMETYPE = 'application/octet-stream'

# Dangerous patterns in filenames
DANGEROUS_PATTERNS = [
    r'\.\.', r'/', r'\\', r'[\x00-\x1f\x7f]',  # Path traversal, control chars
    r'<', r'>', r':', r'"', r'\|', r'\?', r'\*'  # Windows special chars
]

_MIMETYPE_PATTERN = re.compile(r'^[\w.+-]+/[\w.+-]+$')


def sanitize_filename(filename: str) -> str:
    """
    Sanitize a filename to prevent path traversal and header injection.

    Args:
        filename: Original filename

    Returns:
        Safe filename
    """
    if not filename:
        return "unnamed_file"

    for pattern in DANGEROUS_PATTERNS:
        filename = re.sub(pattern, '', filename)

    filename = filename.strip('. \t\n\r')

    # Limit length, keeping the extension
    if len(filename) > 255:
        stem, dot, ext = filename.rpartition('.')
        if dot and len(ext) <= 50:
            filename = stem[:200] + dot + ext
        else:
            filename = filename[:255]

    return filename or "unnamed_file"


def sanitize_mimetype(mimetype: str) -> str:
    """Keep a well-formed type/subtype, otherwise fall back to octet-stream."""
    mimetype = (mimetype or '').split(';')[0].strip().lower()
    if not _MIMETYPE_PATTERN.match(mimetype) or len(mimetype) > 100:
        return DEFAULT_MIMETYPE
    return mimetype


def log_security_event(event_type: str, details: dict):
    """Log a security-relevant event."""
    security_logger.warning(f"SECURITY_EVENT: {event_type} - {details}")
