"""Pydantic schemas for request/response validation."""

from .analytics import *  # noqa: F403
from .booking import *  # noqa: F403
from .common import *  # noqa: F403
from .health import *  # noqa: F403
from .profile import *  # noqa: F403
from .tour import *  # noqa: F403
