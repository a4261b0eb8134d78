"""Maps web-service client components (session, directions, places)."""

from .directions import DirectionsAPI  # noqa: F401
from .places import PlacesAPI  # noqa: F401
from .session import create_default_session, get_default_session  # noqa: F401
