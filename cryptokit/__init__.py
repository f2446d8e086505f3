"""cryptokit - signed bearer tokens, credential hashing and key utilities."""

__version__ = "0.1.0"
