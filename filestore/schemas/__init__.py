"""Request/response models for file and directory operations."""
