# SQLModel definitions - imported here to ensure metadata is populated for Alembic.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .profile import Profile  # noqa: F401
from .perfume import Perfume  # noqa: F401
from .follow import UserFollow  # noqa: F401
from .notification import Notification  # noqa: F401
from .comment import PerfumeComment  # noqa: F401
