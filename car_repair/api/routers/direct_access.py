"""
Direct-access link endpoints.

Routes: GET /direct-access/validate, POST /direct-access/redeem

The report-ready email links to `{frontend_url}/direct-access?token=...`;
the frontend checks the token here before showing the report. Invalid
tokens are answered with 200 and a reason so the page can explain why.

Dependencies: car_repair.application.services.token_service
System role: Token validation HTTP API for emailed report links
"""

from fastapi import APIRouter, Depends, Query

from car_repair.api.deps import get_token_service
from car_repair.application.services.token_service import TokenCheck, TokenService
from car_repair.boundary.db.models.user_token_model import TokenType
from car_repair.models.api import DirectAccessResponse

router = APIRouter(prefix="/direct-access", tags=["direct-access"])


def _to_response(check: TokenCheck) -> DirectAccessResponse:
    if not check.valid:
        return DirectAccessResponse(valid=False, reason=check.reason)
    return DirectAccessResponse(valid=True, report_id=check.data.get("report_id"), user_id=check.user_id)


@router.get("/validate", response_model=DirectAccessResponse)
async def validate_direct_access(
    token: str = Query(default=""),
    token_service: TokenService = Depends(get_token_service),
) -> DirectAccessResponse:
    """Check a direct-access token without using it up."""
    check = await token_service.validate(token.strip(), TokenType.DIRECT_ACCESS)
    return _to_response(check)


@router.post("/redeem", response_model=DirectAccessResponse)
async def redeem_direct_access(
    token: str = Query(default=""),
    token_service: TokenService = Depends(get_token_service),
) -> DirectAccessResponse:
    """Use a direct-access token; later attempts report it as used."""
    check = await token_service.validate(token.strip(), TokenType.DIRECT_ACCESS, consume=True)
    return _to_response(check)
