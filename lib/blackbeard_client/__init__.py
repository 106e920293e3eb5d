from .body import MultipartBody, new_multipart_body
from .cache import ResponseCache
from .client import Client, ClientBuilder, new_client
from .config_types import CacheConfig, ClientConfig
from .decode import (
    PaginatedResponse,
    body_to_value,
    decode_into,
    extract_first_paginated,
    extract_paginated,
    parse_error,
)
from .errors import (
    BlackbeardError,
    ConfigurationError,
    ConstructionError,
    DecodeError,
    EncodingError,
    ErrorResponse,
    InvalidTargetError,
    MultipartFileError,
    NetworkError,
    is_error_response,
    is_invalid_target_error,
)
from .logger import Logger, LoggerPanic, NoLogger, StdLogger

__version__ = "0.1.0"

__all__ = [
    "BlackbeardError",
    "CacheConfig",
    "Client",
    "ClientBuilder",
    "ClientConfig",
    "ConfigurationError",
    "ConstructionError",
    "DecodeError",
    "EncodingError",
    "ErrorResponse",
    "InvalidTargetError",
    "Logger",
    "LoggerPanic",
    "MultipartBody",
    "MultipartFileError",
    "NetworkError",
    "NoLogger",
    "PaginatedResponse",
    "ResponseCache",
    "StdLogger",
    "body_to_value",
    "decode_into",
    "extract_first_paginated",
    "extract_paginated",
    "is_error_response",
    "is_invalid_target_error",
    "new_client",
    "new_multipart_body",
    "parse_error",
]
