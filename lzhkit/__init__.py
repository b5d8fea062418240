"""PMarc -pm1-/-pm2- decoders and helpers for filtering, listing, testing and extracting LZH archive members."""

__version__ = "0.4.0"