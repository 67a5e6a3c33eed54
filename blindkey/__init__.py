"""blindkey: password-derived key wrapping over a blind user-record store."""
from .errors import (AuthError, BadCredentials, SchemaInvalid, StoreUnavailable,
                     UserAlreadyExists)

__version__ = "1.0.0"
