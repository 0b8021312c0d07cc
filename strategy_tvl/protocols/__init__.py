"""On-chain protocol parsers and readers."""
