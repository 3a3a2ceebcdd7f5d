"""Generic cell update API router."""

import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.models import UpdateRequest, UpdateResponse
from app.api.utils import get_tenant_db
from app.services.persistence_dispatch import dispatch_update

router = APIRouter()

logger = logging.getLogger(__name__)


@router.post("/api/database/update", tags=["Tables"], response_model=UpdateResponse)
async def update_cell(
    request: UpdateRequest,
    db: Session = Depends(get_tenant_db),
):
    """
    Persist one cell edit for the active tenant.

    `partner_selection` on bank_transactions takes `{"partnerId", "partnerType"}`
    and sets tenant_ref or business_partner_ref, clearing the other, in one
    statement.

    **Example Request:**
    ```json
    {
        "table": "bank_transactions",
        "id": "42",
        "field": "partner_selection",
        "value": {"partnerId": "7", "partnerType": "tenant"}
    }
    ```
    """
    row = dispatch_update(db, request.table, request.id, request.field, request.value)
    return UpdateResponse(data=row)
