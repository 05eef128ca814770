"""
Bills API endpoints.

Published articles for the public site.

Responsibility: Bill endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ledge.db.session import get_db
from ledge.db.repositories import BillRepository
from api.v1.schemas.bills import BillResponse, BillListResponse, BillDetailResponse

router = APIRouter()


@router.get("/bills", response_model=BillListResponse)
async def list_bills(
    limit: int = Query(20, ge=1, le=100, description="Number of results"),
    offset: int = Query(0, ge=0, description="Pagination offset"),
    db: AsyncSession = Depends(get_db)
):
    """
    List published bills, newest first.

    Args:
        limit: Maximum results to return (1-100)
        offset: Number of results to skip
        db: Database session

    Returns:
        BillListResponse with bills and pagination metadata
    """
    repo = BillRepository(db)
    bills = await repo.list_published(limit=limit, offset=offset)
    total = await repo.count_published()

    return {
        "bills": [BillResponse.model_validate(bill) for bill in bills],
        "total": total,
        "limit": limit,
        "offset": offset,
        "has_more": (offset + len(bills)) < total
    }


@router.get("/bills/{slug}", response_model=BillDetailResponse)
async def get_bill(slug: str, db: AsyncSession = Depends(get_db)):
    """
    Get one published article by url slug.

    Raises:
        HTTPException: 404 if no published bill has this slug
    """
    bill = await BillRepository(db).get_published_by_slug(slug)
    if not bill:
        raise HTTPException(status_code=404, detail=f"Bill {slug} not found")
    return BillDetailResponse.model_validate(bill)
