"""Wire encodings for the HTTP surface."""
