"""
ORM models. Importing this package registers every table on `Base.metadata`
(Alembic autogenerate and the test fixtures rely on that).
"""

from photo_browser.models.album import Album
from photo_browser.models.photo import Photo
from photo_browser.models.user import User

__all__ = ["Album", "Photo", "User"]
