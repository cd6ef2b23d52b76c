"""Admin authorization for configuration-changing routes.

Admin routes require the X-Bondcalc-Admin-Key header to match the configured
BONDCALC_ADMIN_KEY. When no key is configured every admin request is denied.
"""

import hmac
import logging
from typing import Annotated

from fastapi import Depends, Request

from bondcalc.api.errors import BondcalcHttpError
from bondcalc.settings import Settings

logger = logging.getLogger(__name__)

ADMIN_KEY_HEADER = "X-Bondcalc-Admin-Key"


async def require_admin(request: Request) -> None:
    """FastAPI dependency enforcing the admin key.

    Raises:
        BondcalcHttpError: 403 when admin access is not configured or the key
            is missing or wrong.
    """
    settings: Settings = request.app.state.settings
    if not settings.admin_key:
        raise BondcalcHttpError(
            status_code=403,
            code="ADMIN_DISABLED",
            message="Admin access is not configured",
        )

    provided = request.headers.get(ADMIN_KEY_HEADER, "")
    if not hmac.compare_digest(provided.encode("utf-8"), settings.admin_key.encode("utf-8")):
        logger.warning("Unauthorized admin access attempt on %s", request.url.path)
        raise BondcalcHttpError(
            status_code=403,
            code="FORBIDDEN",
            message="Invalid admin key",
        )


RequireAdmin = Annotated[None, Depends(require_admin)]
