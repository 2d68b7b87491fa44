"""FileSystem adapters: local disk and in-memory."""
