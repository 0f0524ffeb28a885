"""
Sales API endpoints for transaction history and statistics.
"""
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from kasir.api.deps import Services, get_services
from kasir.services.receipts import format_receipt_text, receipt_filename

router = APIRouter()


@router.get("/statistics")
async def get_sales_statistics(services: Services = Depends(get_services)):
    """
    Get sales statistics.

    Totals across the retained daily aggregates, today's figures, the
    average transaction value and the most recent days.
    """
    return services.sales_ledger.get_sales_statistics().to_storage()


@router.get("/daily")
async def get_daily_sales(services: Services = Depends(get_services)):
    rows = services.sales_ledger.get_daily_sales()
    return {"days": [row.to_storage() for row in rows], "count": len(rows)}


@router.get("/transactions")
async def get_transactions(limit: int = 50, services: Services = Depends(get_services)):
    """Recent transactions, newest first."""
    limit = max(0, min(limit, services.settings.transaction_history_limit))
    records = services.sales_ledger.get_transaction_history(limit)
    return {
        "transactions": [record.to_storage() for record in records],
        "count": len(records),
    }


@router.get("/transactions/{transaction_id}")
async def get_transaction(transaction_id: str, services: Services = Depends(get_services)):
    record = services.sales_ledger.get_transaction(transaction_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return record.to_storage()


@router.get("/transactions/{transaction_id}/receipt.txt", response_class=PlainTextResponse)
async def get_receipt_text(transaction_id: str, services: Services = Depends(get_services)):
    """Thermal receipt as a downloadable text file."""
    record = services.sales_ledger.get_transaction(transaction_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return PlainTextResponse(
        format_receipt_text(record, services.settings),
        headers={"Content-Disposition": f'attachment; filename="{receipt_filename(record)}"'},
    )
