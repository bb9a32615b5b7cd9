"""Package metadata."""

__app_name__ = "mimecraft"
__version__ = "1.0.0"
__description__ = "Compose RFC 5322 email messages with multipart bodies and RFC 2047 headers."
__license__ = "MIT"
