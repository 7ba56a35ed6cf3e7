"""Constants used throughout the pipeline."""

# Key derivation and AES-GCM parameters
KDF_ITERATIONS = 100_000
SALT_SIZE = 16
IV_SIZE = 12
KEY_SIZE = 32

# 26 + 26 + 10 + 8 symbols
PASSWORD_ALPHABET = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789!@#$%^&*"
)
DEFAULT_PASSWORD_LENGTH = 32

# Default ceiling for a single chunk (5 MiB)
DEFAULT_MAX_CHUNK_SIZE = 5 * 1024 * 1024

DEFAULT_COMPRESSION_LEVEL = "balanced"
DEFAULT_COMPRESSION_BACKEND = "auto"

# Bumped whenever the manifest layout changes
ARTIFACT_FORMAT_VERSION = "1.0"

ENCRYPTION_ALGORITHM = "AES-256-GCM"
KDF_DESCRIPTOR = f"PBKDF2-SHA256-{KDF_ITERATIONS}"

PAYLOAD_SUFFIX = ".payload"
