from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from portal.api.deps import get_db
from portal.core.config import get_settings
from portal.services.table_query import list_table, search_params

router = APIRouter()

settings = get_settings()


@router.get("/list")
def list_rows(
    request: Request,
    table_name: str = Query(alias="tableName"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1),
    order_by: str | None = Query(default=None, alias="orderBy"),
    order_dir: str | None = Query(default="ASC", alias="orderDir"),
    db: Session = Depends(get_db),
) -> dict:
    return list_table(
        db,
        table_name=table_name,
        page=page,
        limit=limit,
        max_limit=settings.table_list_max_limit,
        order_by=order_by,
        order_dir=order_dir,
        search=search_params(request.query_params),
    )
