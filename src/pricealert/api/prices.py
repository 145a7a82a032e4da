from typing import Annotated

from fastapi import APIRouter, Depends

from pricealert.api.deps import get_lookup_service
from pricealert.api.schemas.prices import LookupBody, LookupResponse, ReportResponse, ReportRowResponse
from pricealert.lookup.service import LookupService
from pricealert.lookup.validator import validate_lookup_request
from pricealert.report.renderer import format_plain

router = APIRouter(prefix="/api/prices", tags=["prices"])

LookupServiceDep = Annotated[LookupService, Depends(get_lookup_service)]


@router.post("/lookup", response_model=LookupResponse)
async def lookup_prices(body: LookupBody, service: LookupServiceDep) -> LookupResponse:
    """Price every crypto × currency pair, email the report, and record the search."""
    request = validate_lookup_request(body.email, body.crypto, body.currency)
    result = await service.lookup(request)

    report = result.report
    return LookupResponse(
        message=f"price sent to {result.email}",
        prices={cid: {code: format_plain(p) for code, p in quotes.items()} for cid, quotes in result.prices.items()},
        report=ReportResponse(
            crypto=report.crypto_ids,
            currency=report.currency_codes,
            rows=[
                ReportRowResponse(crypto=row.crypto_id, cells=[format_plain(c) for c in row.cells])
                for row in report.rows
            ],
        ),
    )
