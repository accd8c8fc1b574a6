"""Decode Google News article links into original publisher URLs."""

from gnewsdecoder.models import DecodeOutcome, DecodingParams, ErrorKind
from gnewsdecoder.services.decoder import GoogleNewsDecoder, decode_google_news_url

__version__ = "0.1.0"

__all__ = [
    "DecodeOutcome",
    "DecodingParams",
    "ErrorKind",
    "GoogleNewsDecoder",
    "decode_google_news_url",
]
