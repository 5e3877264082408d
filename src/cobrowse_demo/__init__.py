"""Token server and helpers for the cobrowse SDK demo pages."""

from cobrowse_demo.errors import ConfigurationMissing, InvalidArgument, MalformedToken
from cobrowse_demo.token_codec import Claims, Role, decode_token, encode_token, verify_token

__version__ = "1.0.2"

__all__ = [
    "Claims",
    "Role",
    "encode_token",
    "decode_token",
    "verify_token",
    "InvalidArgument",
    "MalformedToken",
    "ConfigurationMissing",
]
