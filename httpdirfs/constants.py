"""Module defining various global constants."""

# httpdirfs version
VERSION = "1.0.0"

# Reserved names of the generated index documents. They are never listed in the
# documents they describe.
DEFAULT_DIRECTORY_DOCUMENT = ".dirls"
DEFAULT_RECURSIVE_DOCUMENT = ".dirrls"

# Placeholder for an absent field in an index document line.
EMPTY_FIELD = "-"

# Request timeout in milliseconds.
DEFAULT_TIMEOUT_MS = 5000

DEFAULT_ENCODING = "utf-8"

# Query parameter appended to requests to defeat intermediary HTTP caches.
CACHE_DEFEAT_PARAM = "r"

# Special exit code for when httpdirfs itself fails.
HTTPDIRFS_ERROR_CODE = 254
