"""
SQLAlchemy implementation of the catalog gateway.

Each call opens its own session so strategies can query concurrently.
Only products with status "active" are ever returned.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import desc, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.orm import selectinload

from api.database.models import Artist, ArtistFollow, BrowsingHistory, Order, OrderItem, Product, ProductAttribute

from .errors import GatewayError
from .gateway import CatalogGateway
from .schemas import (
    ArtistSummary,
    Availability,
    CatalogItem,
    CollaborativeCandidate,
    DimensionOperator,
    HistoryEntry,
    PurchaseEntry,
    SearchFilters,
    SortMode,
)

logger = logging.getLogger(__name__)

ACTIVE = "active"
PAID = "paid"
COLOR = "color"
TAG = "tag"


def _utcnow() -> datetime:
    # Stored timestamps are naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SQLCatalogGateway(CatalogGateway):
    """Catalog gateway backed by the marketplace database"""

    def __init__(self, session_factory: async_sessionmaker, clock: Optional[Callable[[], datetime]] = None):
        self.session_factory = session_factory
        self.clock = clock or _utcnow
        logger.info("SQLCatalogGateway initialized")

    @asynccontextmanager
    async def _session(self, operation: str):
        try:
            async with self.session_factory() as session:
                yield session
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database error in {operation}: {e}")
            raise GatewayError(f"{operation} failed") from e

    # ==================== Catalog ====================

    async def query_catalog(
        self,
        filters: SearchFilters,
        page: int,
        page_size: int
    ) -> Tuple[List[CatalogItem], int]:
        conditions = self._filter_conditions(filters)

        query = (
            select(Product)
            .options(selectinload(Product.artist), selectinload(Product.attributes))
            .where(*conditions)
            .order_by(*self._ordering(filters.sort_by))
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        count_query = select(func.count()).select_from(Product).where(*conditions)

        async with self._session("query_catalog") as session:
            total = (await session.execute(count_query)).scalar() or 0
            products = (await session.execute(query)).scalars().unique().all()

        logger.debug(f"query_catalog page {page}: {len(products)} of {total}")
        return [self._to_catalog_item(p) for p in products], total

    def _filter_conditions(self, filters: SearchFilters) -> list:
        conditions = [Product.status == ACTIVE]

        if filters.availability == Availability.IN_STOCK:
            conditions.append(Product.stock_quantity > 0)

        text = filters.text
        if text:
            pattern = f"%{text}%"
            conditions.append(
                or_(
                    Product.title.ilike(pattern),
                    Product.description.ilike(pattern),
                    Product.id.in_(self._attribute_match(TAG, [text.lower()])),
                )
            )

        if filters.categories:
            conditions.append(Product.category.in_(filters.categories))

        if filters.styles:
            conditions.append(Product.style.in_(filters.styles))

        if filters.mediums:
            conditions.append(Product.medium.in_(filters.mediums))

        if filters.artists:
            conditions.append(Product.artist_id.in_(filters.artists))

        if filters.price_range:
            conditions.append(Product.price >= filters.price_range.min)
            if filters.price_range.max is not None:
                conditions.append(Product.price <= filters.price_range.max)

        if filters.year_range:
            if filters.year_range.min is not None:
                conditions.append(Product.year_created >= filters.year_range.min)
            if filters.year_range.max is not None:
                conditions.append(Product.year_created <= filters.year_range.max)

        if filters.colors:
            conditions.append(Product.id.in_(self._attribute_match(COLOR, filters.colors)))

        if filters.tags:
            conditions.append(Product.id.in_(self._attribute_match(TAG, filters.tags)))

        if filters.dimensions:
            value = filters.dimensions.value
            if filters.dimensions.operator == DimensionOperator.MIN:
                conditions.append(Product.width >= value)
            elif filters.dimensions.operator == DimensionOperator.MAX:
                conditions.append(Product.width <= value)
            else:
                conditions.append(Product.width == value)

        return conditions

    @staticmethod
    def _attribute_match(name: str, values: Sequence[str]):
        return select(ProductAttribute.product_id).where(
            ProductAttribute.attribute_name == name,
            func.lower(ProductAttribute.attribute_value).in_([v.lower() for v in values]),
        )

    @staticmethod
    def _ordering(sort_by: SortMode) -> list:
        if sort_by == SortMode.PRICE_ASC:
            return [Product.price.asc(), Product.id]
        if sort_by == SortMode.PRICE_DESC:
            return [Product.price.desc(), Product.id]
        if sort_by == SortMode.OLDEST:
            return [Product.created_at.asc(), Product.id]
        if sort_by == SortMode.POPULARITY:
            return [Product.view_count.desc().nulls_last(), Product.id]
        # newest, and relevance (re-ranked by the scorer)
        return [Product.created_at.desc(), Product.id]

    # ==================== Collaborative filtering ====================

    async def find_similar_users(self, user_id: str, limit: int) -> List[str]:
        target_products = (
            select(OrderItem.product_id)
            .join(Order, OrderItem.order_id == Order.id)
            .where(Order.user_id == user_id, Order.status == PAID)
        )
        shared = func.count(func.distinct(OrderItem.product_id)).label("shared")
        query = (
            select(Order.user_id, shared)
            .join(OrderItem, OrderItem.order_id == Order.id)
            .where(
                Order.status == PAID,
                Order.user_id != user_id,
                OrderItem.product_id.in_(target_products),
            )
            .group_by(Order.user_id)
            .order_by(desc("shared"), Order.user_id)
            .limit(limit)
        )

        async with self._session("find_similar_users") as session:
            rows = (await session.execute(query)).all()

        return [row.user_id for row in rows]

    async def get_collaborative_candidates(
        self,
        user_id: str,
        similar_user_ids: Sequence[str],
        limit: int
    ) -> List[CollaborativeCandidate]:
        if not similar_user_ids:
            return []

        purchased = (
            select(OrderItem.product_id)
            .join(Order, OrderItem.order_id == Order.id)
            .where(Order.user_id == user_id, Order.status == PAID)
        )
        viewed = select(BrowsingHistory.product_id).where(BrowsingHistory.user_id == user_id)
        buyers = func.count(func.distinct(Order.user_id)).label("buyers")

        query = (
            select(OrderItem.product_id, buyers)
            .join(Order, OrderItem.order_id == Order.id)
            .join(Product, Product.id == OrderItem.product_id)
            .where(
                Order.status == PAID,
                Order.user_id.in_(list(similar_user_ids)),
                Product.status == ACTIVE,
                Product.stock_quantity > 0,
                OrderItem.product_id.not_in(purchased),
                OrderItem.product_id.not_in(viewed),
            )
            .group_by(OrderItem.product_id)
            .order_by(desc("buyers"), OrderItem.product_id)
            .limit(limit)
        )

        async with self._session("get_collaborative_candidates") as session:
            rows = (await session.execute(query)).all()
            products = await self._load_products(session, [row.product_id for row in rows])

        similar_count = len(similar_user_ids)
        candidates = []
        for row in rows:
            product = products.get(row.product_id)
            if product is None:
                continue
            score = 0.5 + 0.5 * min(row.buyers / similar_count, 1.0)
            candidates.append(CollaborativeCandidate(item=self._to_catalog_item(product), score=score))
        return candidates

    # ==================== Trending & similarity ====================

    async def get_trending_items(self, limit: int, window_days: int) -> List[CatalogItem]:
        since = self.clock() - timedelta(days=window_days)
        views = func.count(BrowsingHistory.id).label("views")
        query = (
            select(Product.id, views)
            .join(BrowsingHistory, BrowsingHistory.product_id == Product.id)
            .where(
                Product.status == ACTIVE,
                Product.stock_quantity > 0,
                BrowsingHistory.viewed_at >= since,
            )
            .group_by(Product.id, Product.created_at)
            .order_by(desc("views"), Product.created_at.desc())
            .limit(limit)
        )

        async with self._session("get_trending_items") as session:
            rows = (await session.execute(query)).all()
            products = await self._load_products(session, [row.id for row in rows])

        return [self._to_catalog_item(products[row.id]) for row in rows if row.id in products]

    async def get_similar_items(self, seed_item_ids: Sequence[str], limit: int) -> List[CatalogItem]:
        if not seed_item_ids:
            return []

        async with self._session("get_similar_items") as session:
            seeds = list((await self._load_products(session, seed_item_ids)).values())

            categories = {s.category for s in seeds if s.category}
            styles = {s.style for s in seeds if s.style}
            mediums = {s.medium for s in seeds if s.medium}
            colors = {a.attribute_value for s in seeds for a in s.attributes if a.attribute_name == COLOR}

            overlap = []
            if categories:
                overlap.append(Product.category.in_(categories))
            if styles:
                overlap.append(Product.style.in_(styles))
            if mediums:
                overlap.append(Product.medium.in_(mediums))
            if not overlap:
                return []

            query = (
                select(Product)
                .options(selectinload(Product.artist), selectinload(Product.attributes))
                .where(
                    Product.status == ACTIVE,
                    Product.id.not_in(list(seed_item_ids)),
                    or_(*overlap),
                )
                .order_by(Product.created_at.desc(), Product.id)
                .limit(limit * 5)
            )
            candidates = (await session.execute(query)).scalars().unique().all()

        def similarity(product: Product) -> int:
            shared_colors = {a.attribute_value for a in product.attributes if a.attribute_name == COLOR} & colors
            return (
                (product.category in categories)
                + (product.style in styles)
                + (product.medium in mediums)
                + len(shared_colors)
            )

        ranked = sorted(candidates, key=similarity, reverse=True)
        return [self._to_catalog_item(p) for p in ranked[:limit]]

    # ==================== User history ====================

    async def get_browsing_history(self, user_id: str, limit: int) -> List[HistoryEntry]:
        query = (
            select(BrowsingHistory)
            .options(selectinload(BrowsingHistory.product).selectinload(Product.attributes))
            .where(BrowsingHistory.user_id == user_id)
            .order_by(BrowsingHistory.viewed_at.desc(), BrowsingHistory.id.desc())
            .limit(limit)
        )

        async with self._session("get_browsing_history") as session:
            views = (await session.execute(query)).scalars().all()

        return [
            HistoryEntry(
                item_id=view.product_id,
                time_spent_seconds=view.time_spent_seconds or 0,
                viewed_at=view.viewed_at,
                category=view.product.category,
                style=view.product.style,
                medium=view.product.medium,
                price=view.product.price,
                dominant_colors=self._attribute_values(view.product, COLOR),
                artist_id=view.product.artist_id,
            )
            for view in views
            if view.product is not None
        ]

    async def get_purchase_history(self, user_id: str) -> List[PurchaseEntry]:
        query = (
            select(OrderItem)
            .join(Order, OrderItem.order_id == Order.id)
            .options(selectinload(OrderItem.product).selectinload(Product.attributes))
            .where(Order.user_id == user_id, Order.status == PAID)
            .order_by(OrderItem.id)
        )

        async with self._session("get_purchase_history") as session:
            lines = (await session.execute(query)).scalars().all()

        return [
            PurchaseEntry(
                item_id=line.product_id,
                quantity=line.quantity or 1,
                price=line.price,
                category=line.product.category,
                style=line.product.style,
                medium=line.product.medium,
                dominant_colors=self._attribute_values(line.product, COLOR),
                artist_id=line.product.artist_id,
            )
            for line in lines
            if line.product is not None
        ]

    async def get_followed_artists(self, user_id: str) -> List[str]:
        query = select(ArtistFollow.artist_id).where(ArtistFollow.user_id == user_id).order_by(ArtistFollow.id)

        async with self._session("get_followed_artists") as session:
            return list((await session.execute(query)).scalars().all())

    # ==================== Suggestions ====================

    async def find_artists(self, name_query: str, limit: int) -> List[ArtistSummary]:
        query = (
            select(Artist)
            .where(Artist.full_name.ilike(f"%{name_query}%"))
            .order_by(Artist.full_name)
            .limit(limit)
        )

        async with self._session("find_artists") as session:
            artists = (await session.execute(query)).scalars().all()

        return [ArtistSummary(id=a.id, full_name=a.full_name) for a in artists]

    async def find_items_by_facet(self, text: str, limit: int) -> List[CatalogItem]:
        pattern = f"%{text}%"
        query = (
            select(Product)
            .options(selectinload(Product.artist), selectinload(Product.attributes))
            .where(
                Product.status == ACTIVE,
                or_(Product.category.ilike(pattern), Product.style.ilike(pattern), Product.medium.ilike(pattern)),
            )
            .order_by(Product.created_at.desc(), Product.id)
            .limit(limit)
        )

        async with self._session("find_items_by_facet") as session:
            products = (await session.execute(query)).scalars().unique().all()

        return [self._to_catalog_item(p) for p in products]

    # ==================== Helpers ====================

    async def _load_products(self, session, product_ids: Sequence[str]) -> Dict[str, Product]:
        if not product_ids:
            return {}
        query = (
            select(Product)
            .options(selectinload(Product.artist), selectinload(Product.attributes))
            .where(Product.id.in_(list(product_ids)), Product.status == ACTIVE)
        )
        products = (await session.execute(query)).scalars().unique().all()
        return {p.id: p for p in products}

    @staticmethod
    def _attribute_values(product: Product, name: str) -> List[str]:
        attributes = sorted((a for a in product.attributes if a.attribute_name == name), key=lambda a: a.position or 0)
        return [a.attribute_value for a in attributes]

    def _to_catalog_item(self, product: Product) -> CatalogItem:
        return CatalogItem(
            id=product.id,
            title=product.title,
            description=product.description,
            price=product.price,
            currency=product.currency or "USD",
            category=product.category,
            style=product.style,
            medium=product.medium,
            dominant_colors=self._attribute_values(product, COLOR),
            tags=self._attribute_values(product, TAG),
            artist_id=product.artist_id,
            artist_name=product.artist.full_name if product.artist else "Unknown Artist",
            year_created=product.year_created,
            width=product.width,
            height=product.height,
            image_url=product.image_url,
            stock_quantity=product.stock_quantity or 0,
            created_at=product.created_at,
        )
