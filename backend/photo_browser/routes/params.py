"""Path parameter types shared by the resource routers."""

from typing import Annotated

from fastapi import Path

# Integer primary keys; out-of-range values fail validation (400)
MAX_ID = 2_147_483_647


def id_path(description: str):
    return Annotated[int, Path(ge=1, le=MAX_ID, description=description)]


AlbumId = id_path("Numeric album id")
PhotoId = id_path("Numeric photo id")
UserId = id_path("Numeric user id")
