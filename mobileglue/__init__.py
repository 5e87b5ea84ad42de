"""SHA digests, the opack encoding, NSKeyedArchiver plists, a byte buffer and a slot collection."""

__version__ = "1.3.1"
__all__ = ["archivetypes", "cbuf", "collection", "glue", "keyedarchive", "opack", "sha"]