"""File hashing utilities for attachment deduplication."""

import base64
import hashlib
from pathlib import Path


def calculate_file_hash(file_path: Path | str, chunk_size: int = 8192) -> str:
    """
    Calculate the SHA-256 hash of a file in the target's ``data_hash`` format.

    Args:
        file_path: Path to the file to hash
        chunk_size: Size of chunks to read (default: 8KB)

    Returns:
        Base64 (standard alphabet, padded) encoding of the SHA-256 digest
        (44 characters)

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the path is not a regular file
        IOError: If there's an error reading the file
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    if not file_path.is_file():
        raise ValueError(f"Not a file: {file_path}")

    sha256_hash = hashlib.sha256()

    with open(file_path, "rb") as f:
        # Read file in chunks to handle large files efficiently
        while chunk := f.read(chunk_size):
            sha256_hash.update(chunk)

    return base64.b64encode(sha256_hash.digest()).decode("ascii")


def calculate_content_hash(content: str | bytes) -> str:
    """
    Calculate the SHA-256 hash of content in ``data_hash`` format.

    Args:
        content: String or bytes content to hash

    Returns:
        Base64 encoding of the SHA-256 digest
    """
    if isinstance(content, str):
        content = content.encode("utf-8")

    return base64.b64encode(hashlib.sha256(content).digest()).decode("ascii")
