"""
Identify Endpoint

POST /identify resolves an email and/or phone number to a consolidated identity.
"""
import logging
from fastapi import APIRouter, Depends, Request

from app.core.config import settings
from app.core.dependencies import get_identity_service
from app.middleware.rate_limit import limiter
from app.models.schemas.health import ErrorResponse
from app.models.schemas.identify import IdentifyRequest, IdentifyResponse
from app.services.identity.service import IdentityService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["identity"])


@router.post(
    "/identify",
    response_model=IdentifyResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
@limiter.limit(settings.identify_rate_limit)
def identify(
    request: Request,
    body: IdentifyRequest,
    service: IdentityService = Depends(get_identity_service)
):
    """
    Identify a person by email and/or phone number.

    **Behaviour**:
    - Unknown identifiers → new primary contact
    - Known identity + new identifier → new secondary contact
    - Identifiers from two identities → the newer primary becomes secondary

    Runs as a plain function so FastAPI executes it in the thread pool;
    store calls block.
    """
    logger.debug(f"Identify request: email={body.email!r} phoneNumber={body.phone_number!r}")
    return service.identify(email=body.email, phone_number=body.phone_text)
