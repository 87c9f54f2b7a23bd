"""HTTP middleware: request correlation, CORS, and unhandled errors."""

from askgate.middleware.cors import CORSMiddleware
from askgate.middleware.errors import UnhandledExceptionMiddleware
from askgate.middleware.request_id import RequestIDMiddleware

__all__ = ["CORSMiddleware", "RequestIDMiddleware", "UnhandledExceptionMiddleware"]
