import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from retail_radar.db import get_db
from retail_radar.schemas.search_schema import SearchRequest, SearchResponse
from retail_radar.services.search_service import CatalogUnavailable, SearchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/search", tags=["search"])


def get_search_service(db: Session = Depends(get_db)) -> SearchService:
    try:
        return SearchService.from_session(db)
    except CatalogUnavailable as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post(
    "",
    summary="Search products near a location",
    response_model=SearchResponse,
    response_model_by_alias=True,
)
def search(payload: SearchRequest, svc: SearchService = Depends(get_search_service)):
    try:
        return svc.search(payload)
    except CatalogUnavailable as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/categories", summary="Product count per category")
def categories(svc: SearchService = Depends(get_search_service)):
    return {"categories": svc.categories()}


@router.get("/suggestions", summary="Autocomplete product names and keywords")
def suggestions(
    q: Optional[str] = Query(None, max_length=100),
    svc: SearchService = Depends(get_search_service),
):
    return {"suggestions": svc.suggestions(q)}
