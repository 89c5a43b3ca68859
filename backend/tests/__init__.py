# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from courtbook.models.court import Court  # noqa: F401
from courtbook.models.reservation import Reservation  # noqa: F401
from courtbook.models.user import User  # noqa: F401
