import logging
import math
from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from retail_radar.config import Settings, settings
from retail_radar.models.inventory_record import InventoryRecord
from retail_radar.repositories.product_repo import ProductRepository
from retail_radar.schemas.search_schema import (
    AppliedFilters,
    NearestStore,
    Pagination,
    ProductSummary,
    SearchLocation,
    SearchRequest,
    SearchResponse,
    SearchResult,
    Sorting,
    StoreOffer,
)
from retail_radar.services.store_index import NearbyStore, StoreIndex
from retail_radar.utils.deep_links import (
    RETAILER_LINKS,
    brand_to_key,
    generate_product_url,
    generate_store_url,
)
from retail_radar.utils.geo import estimate_delivery_time

logger = logging.getLogger(__name__)

SORT_FIELDS = ("relevance", "price", "distance", "name")
NAME_WEIGHT = 3
KEYWORD_WEIGHT = 2
CATEGORY_WEIGHT = 1
MIN_SUGGESTION_LENGTH = 2
MAX_SUGGESTIONS = 10


class SearchException(Exception):
    pass


class CatalogUnavailable(SearchException):
    """The catalog or store/inventory provider could not be read."""


@dataclass(frozen=True)
class CatalogEntry:
    """Immutable view of a catalog product, with lowercased match fields."""

    sku: str
    name: str
    category: str
    price: float
    keywords: Tuple[str, ...] = ()
    retailers: Tuple[str, ...] = ()
    brand: Optional[str] = None
    image: Optional[str] = None

    @classmethod
    def from_product(cls, product) -> "CatalogEntry":
        return cls(
            sku=product.sku,
            name=product.name,
            category=(product.category or "").lower(),
            price=product.price,
            keywords=tuple(k.lower() for k in (product.keywords or [])),
            retailers=tuple(r.lower() for r in (product.retailers or [])),
            brand=product.brand,
            image=getattr(product, "image", None),
        )


def tokenize(query: Optional[str]) -> List[str]:
    return (query or "").lower().split()


def relevance_score(terms: Sequence[str], entry: CatalogEntry) -> int:
    """3 per term in the name, 2 per term in any keyword, 1 per term in the category."""
    name = entry.name.lower()
    score = 0
    for term in terms:
        if term in name:
            score += NAME_WEIGHT
        if any(term in keyword for keyword in entry.keywords):
            score += KEYWORD_WEIGHT
        if term in entry.category:
            score += CATEGORY_WEIGHT
    return score


def sort_results(results: List[SearchResult], sort_by: str, sort_order: str) -> List[SearchResult]:
    """
    Stable in-place sort. Relevance is always descending, whatever the
    requested order.
    """
    reverse = sort_order == "desc"
    if sort_by == "price":
        results.sort(key=lambda r: r.best_price, reverse=reverse)
    elif sort_by == "distance":
        results.sort(
            key=lambda r: r.nearest_store.distance if r.nearest_store else math.inf,
            reverse=reverse,
        )
    elif sort_by == "name":
        results.sort(key=lambda r: r.product.name.lower(), reverse=reverse)
    else:
        results.sort(key=lambda r: r.relevance_score, reverse=True)
    return results


def _valid(value: Optional[float], low: float, high: float) -> bool:
    return value is not None and math.isfinite(value) and low <= value <= high


class SearchService:
    """
    Geo-aware product search over an immutable catalog snapshot.

    The catalog is handed in at construction; stores and inventory are read
    through the StoreIndex. Nothing here writes.
    """

    def __init__(self, catalog: Iterable, index: StoreIndex, config: Settings = settings):
        self.catalog = [
            entry if isinstance(entry, CatalogEntry) else CatalogEntry.from_product(entry)
            for entry in catalog
        ]
        self.index = index
        self.config = config

    @classmethod
    def from_session(cls, db: Session, config: Settings = settings) -> "SearchService":
        try:
            products = ProductRepository(db).list_all()
        except SQLAlchemyError as e:
            logger.exception("Catalog lookup failed")
            raise CatalogUnavailable("Catalog lookup failed") from e
        return cls(products, StoreIndex(db), config)

    # -- request normalisation -------------------------------------------------

    def resolve_location(self, lat: Optional[float], lng: Optional[float]) -> Tuple[float, float]:
        if _valid(lat, -90, 90) and _valid(lng, -180, 180):
            return lat, lng
        return self.config.DEFAULT_LAT, self.config.DEFAULT_LNG

    def resolve_radius(self, radius: Optional[float]) -> float:
        if radius is None or not math.isfinite(radius):
            radius = self.config.DEFAULT_RADIUS_MILES
        return min(max(radius, 0.0), self.config.MAX_RADIUS_MILES)

    def resolve_limit(self, limit: Optional[int]) -> int:
        if limit is None:
            limit = self.config.DEFAULT_PAGE_LIMIT
        return min(max(int(limit), 1), self.config.MAX_PAGE_LIMIT)

    # -- search ----------------------------------------------------------------

    def search(self, request: SearchRequest) -> SearchResponse:
        lat, lng = self.resolve_location(request.lat, request.lng)
        radius = self.resolve_radius(request.radius)
        limit = self.resolve_limit(request.limit)
        page = max(int(request.page or 1), 1)
        sort_by = request.sort_by if request.sort_by in SORT_FIELDS else "relevance"
        sort_order = "desc" if request.sort_order == "desc" else "asc"
        query = request.query or ""

        candidates = self._match_catalog(query, request.category, request.retailer)
        results: List[SearchResult] = []
        if candidates:
            nearby = self._stores_near(lat, lng, radius)
            if nearby:
                store_map = {n.store_id: n for n in nearby}
                records = self._inventory(store_map.keys(), {entry.sku for entry, _ in candidates})
                by_sku: Dict[str, List[InventoryRecord]] = defaultdict(list)
                for record in records:
                    by_sku[record.product_sku].append(record)

                for entry, score in candidates:
                    offers = self._offers(
                        by_sku.get(entry.sku, []),
                        store_map,
                        request.in_stock_only,
                        request.min_price,
                        request.max_price,
                    )
                    if not offers:
                        continue
                    results.append(self._build_result(entry, score, offers, store_map, lat, lng))

        sort_results(results, sort_by, sort_order)

        total = len(results)
        total_pages = math.ceil(total / limit)
        offset = (page - 1) * limit
        logger.debug(
            "search query=%r at (%s, %s) r=%s: %d results", query, lat, lng, radius, total
        )
        return SearchResponse(
            query=query,
            location=SearchLocation(lat=lat, lng=lng, radius=radius),
            filters=AppliedFilters(
                category=request.category,
                min_price=request.min_price,
                max_price=request.max_price,
                retailer=request.retailer,
                in_stock_only=request.in_stock_only,
            ),
            sorting=Sorting(sort_by=sort_by, sort_order=sort_order),
            pagination=Pagination(
                page=page, limit=limit, total_results=total, total_pages=total_pages
            ),
            results=results[offset:offset + limit],
        )

    def _match_catalog(
        self, query: str, category: Optional[str], retailer: Optional[str]
    ) -> List[Tuple[CatalogEntry, int]]:
        terms = tokenize(query)
        if terms:
            scored = [(entry, relevance_score(terms, entry)) for entry in self.catalog]
            scored = [(entry, score) for entry, score in scored if score > 0]
        else:
            scored = [(entry, 1) for entry in self.catalog]

        if category:
            wanted = category.lower()
            scored = [(e, s) for e, s in scored if e.category == wanted]
        if retailer:
            wanted = retailer.lower()
            scored = [(e, s) for e, s in scored if wanted in e.retailers]
        return scored

    def _stores_near(self, lat: float, lng: float, radius: float) -> List[NearbyStore]:
        try:
            return self.index.stores_near(lat, lng, radius)
        except SQLAlchemyError as e:
            logger.exception("Store lookup failed")
            raise CatalogUnavailable("Store lookup failed") from e

    def _inventory(self, store_ids, skus) -> List[InventoryRecord]:
        try:
            return self.index.inventory_for_stores(store_ids, skus=skus)
        except SQLAlchemyError as e:
            logger.exception("Inventory lookup failed")
            raise CatalogUnavailable("Inventory lookup failed") from e

    @staticmethod
    def _offers(
        records: List[InventoryRecord],
        store_map: Dict[str, NearbyStore],
        in_stock_only: bool,
        min_price: Optional[float],
        max_price: Optional[float],
    ) -> List[InventoryRecord]:
        offers = []
        for record in records:
            if record.store_id not in store_map:
                continue
            if in_stock_only and not record.in_stock:
                continue
            if min_price is not None and record.price < min_price:
                continue
            if max_price is not None and record.price > max_price:
                continue
            offers.append(record)
        return offers

    @staticmethod
    def _retailer_key(nearby: NearbyStore) -> Optional[str]:
        if nearby.store.retailer in RETAILER_LINKS:
            return nearby.store.retailer
        return brand_to_key(nearby.store.brand)

    def _build_result(
        self,
        entry: CatalogEntry,
        score: int,
        offers: List[InventoryRecord],
        store_map: Dict[str, NearbyStore],
        lat: float,
        lng: float,
    ) -> SearchResult:
        # independent picks: the cheapest offer need not be the nearest one
        best = min(offers, key=lambda r: (r.price, r.store_id, r.id))
        nearest = min(offers, key=lambda r: (store_map[r.store_id].distance, r.store_id, r.id))
        nearest_store = store_map[nearest.store_id]
        nearest_key = self._retailer_key(nearest_store)

        others = []
        seen = {nearest.store_id}
        by_distance = sorted(
            offers, key=lambda r: (store_map[r.store_id].distance, r.store_id, r.price, r.id)
        )
        for record in by_distance:
            if len(others) >= self.config.OTHER_STORES_LIMIT:
                break
            if record.store_id in seen:
                continue
            seen.add(record.store_id)
            nearby = store_map[record.store_id]
            key = self._retailer_key(nearby)
            others.append(
                StoreOffer(
                    store_id=record.store_id,
                    name=nearby.store.name,
                    brand=nearby.store.brand,
                    retailer_key=key,
                    distance=nearby.distance,
                    price=record.price,
                    quantity=record.quantity,
                    inventory_id=record.id,
                    buy_url=generate_product_url(key, entry.name, brand=entry.brand) if key else None,
                )
            )

        return SearchResult(
            product=ProductSummary(
                sku=entry.sku,
                name=entry.name,
                category=entry.category,
                image=entry.image,
                brand=entry.brand,
                base_price=entry.price,
            ),
            best_price=best.price,
            store_count=len({r.store_id for r in offers}),
            nearest_store=NearestStore(
                id=nearest_store.store_id,
                name=nearest_store.store.name,
                brand=nearest_store.store.brand,
                retailer_key=nearest_key,
                address=nearest_store.store.address,
                distance=nearest_store.distance,
                delivery_estimate=estimate_delivery_time(nearest_store.distance),
                price=nearest.price,
                quantity=nearest.quantity,
                inventory_id=nearest.id,
                buy_url=generate_product_url(nearest_key, entry.name, brand=entry.brand)
                if nearest_key
                else None,
                store_url=generate_store_url(nearest_key, lat, lng) if nearest_key else None,
            ),
            other_stores=others,
            relevance_score=score,
        )

    # -- catalog companions (no geo step) ---------------------------------------

    def categories(self) -> Dict[str, int]:
        counts = Counter(entry.category for entry in self.catalog)
        return {category: counts[category] for category in sorted(counts)}

    def suggestions(self, prefix: Optional[str]) -> List[str]:
        q = (prefix or "").lower().strip()
        if len(q) < MIN_SUGGESTION_LENGTH:
            return []
        found: List[str] = []
        seen = set()

        def _add(value: str):
            if value not in seen:
                seen.add(value)
                found.append(value)

        for entry in self.catalog:
            if q in entry.name.lower():
                _add(entry.name)
            for keyword in entry.keywords:
                if q in keyword:
                    _add(keyword)
            if len(found) >= MAX_SUGGESTIONS:
                break
        return found[:MAX_SUGGESTIONS]
