"""Figma search connector.

Logs into Figma with the browser session flow, searches files, projects
and teams in an organization, and returns display-ready results with
thumbnail previews.
"""

from .auth import extract_session_token, login
from .config import FigmaOptions
from .engine import FigmaEngine
from .exceptions import (
    AuthenticationError,
    BackendRequestError,
    ConfigurationError,
    FigmaError,
    NotInitializedError,
    QuotaExhaustedError,
    ThumbnailResolutionError,
)
from .models import File, Project, Result, Team
from .ratelimit import RateLimitedAccessor
from .search import ResourceKind, search
from .thumbnail import render_thumbnail, resolve_signed_url

__all__ = [
    "FigmaEngine",
    "FigmaOptions",
    "RateLimitedAccessor",
    "login",
    "extract_session_token",
    "search",
    "ResourceKind",
    "resolve_signed_url",
    "render_thumbnail",
    "Result",
    "File",
    "Project",
    "Team",
    "FigmaError",
    "ConfigurationError",
    "NotInitializedError",
    "AuthenticationError",
    "QuotaExhaustedError",
    "BackendRequestError",
    "ThumbnailResolutionError",
]
