# goldmines/db/gateway.py
import base64
import os
import uuid
from typing import Any, Dict, List, Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import SQLModel

from goldmines.core.exceptions import ConflictError, NotFoundError, PersistenceError, ValidationError
from goldmines.core.logger import logger
from goldmines.db.database import build_engine, build_session_maker
from goldmines.db.models import (
    AnalysisStatus,
    BusinessIdea,
    ItemType,
    MarketingIdea,
    SavedItem,
    SourcePost,
    UserProfile,
)
from goldmines.ingest.analysis import validate_draft, validate_marketing_draft
from goldmines.ingest.schemas import IdeaDraft, MarketingDraft, SourcePostIn

ITEM_TABLES = {
    ItemType.business.value: BusinessIdea,
    ItemType.marketing.value: MarketingIdea,
}

SUMMARY_CHARS = 200
PBKDF2_ITERATIONS = 100_000


def hash_password(password: str, salt: Optional[bytes] = None) -> str:
    salt = salt or os.urandom(16)
    kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=32, salt=salt, iterations=PBKDF2_ITERATIONS)
    digest = kdf.derive(password.encode())
    return f"{base64.b64encode(salt).decode()}${base64.b64encode(digest).decode()}"


class PersistenceGateway:
    """
    Acceso a la base de datos para el pipeline y la API.

    - Ciclo de vida explícito: `open()` al arrancar, `close()` al apagar.
    - Idempotencia por clave natural (external_id, feed).
    - Los errores de SQLAlchemy salen como PersistenceError.
    """

    def __init__(self, database_url: str, create_schema: bool = False, echo: bool = False):
        self.database_url = database_url
        self.create_schema = create_schema
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_maker = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def open(self) -> "PersistenceGateway":
        self._engine = build_engine(self.database_url, echo=self.echo)
        self._session_maker = build_session_maker(self._engine)

        if self.create_schema:
            async with self._engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
            logger.info("Schema verified on %s", self._engine.url.render_as_string(hide_password=True))
        return self

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_maker = None
            logger.info("DB engine disposed")

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise PersistenceError("Persistence gateway is not open")
        return self._engine

    def session(self):
        if self._session_maker is None:
            raise PersistenceError("Persistence gateway is not open")
        return self._session_maker()

    async def ping(self) -> None:
        async with self.session() as session:
            await session.execute(select(1))

    # ------------------------------------------------------------------
    # Source posts
    # ------------------------------------------------------------------
    async def save_source_post(self, post: SourcePostIn) -> SourcePost:
        try:
            existing = await self._find_source_post(post.external_id, post.feed)
            if existing is not None:
                return existing

            async with self.session() as session:
                row = SourcePost(**post.model_dump())
                session.add(row)
                try:
                    await session.commit()
                except IntegrityError:
                    # otro request insertó la misma clave natural
                    await session.rollback()
                    winner = await self._find_source_post(post.external_id, post.feed)
                    if winner is None:
                        raise
                    return winner
                await session.refresh(row)
                return row
        except SQLAlchemyError as e:
            logger.error("DB error saving source post %s", post.external_id, exc_info=True)
            raise PersistenceError("Error saving source post", error=str(e)) from e

    async def _find_source_post(self, external_id: str, feed: str) -> Optional[SourcePost]:
        async with self.session() as session:
            result = await session.execute(
                select(SourcePost).where(SourcePost.external_id == external_id, SourcePost.feed == feed)
            )
            return result.scalars().first()

    # ------------------------------------------------------------------
    # Business ideas
    # ------------------------------------------------------------------
    async def save_business_idea(self, draft: IdeaDraft, stored_post_id: int) -> BusinessIdea:
        validate_draft(draft)

        try:
            async with self.session() as session:
                if await session.get(SourcePost, stored_post_id) is None:
                    raise NotFoundError(f"Source post {stored_post_id} not found")

                idea = BusinessIdea(
                    source_post_id=stored_post_id,
                    analysis_status=AnalysisStatus.completed,
                    **draft.model_dump(),
                )
                session.add(idea)
                await session.commit()
                await session.refresh(idea)
                return idea
        except SQLAlchemyError as e:
            logger.error("DB error saving business idea", exc_info=True)
            raise PersistenceError("Error saving business idea", error=str(e)) from e

    async def get_business_idea(self, idea_id: int) -> BusinessIdea:
        try:
            async with self.session() as session:
                idea = await session.get(BusinessIdea, idea_id)
        except SQLAlchemyError as e:
            raise PersistenceError("Error fetching business idea", error=str(e)) from e

        if idea is None:
            raise NotFoundError(f"Business idea {idea_id} not found")
        return idea

    async def list_business_ideas(self, limit: int = 50, offset: int = 0):
        return await self._list(BusinessIdea, limit, offset)

    # ------------------------------------------------------------------
    # Marketing ideas
    # ------------------------------------------------------------------
    async def save_marketing_idea(self, draft: MarketingDraft, stored_post_id: int) -> MarketingIdea:
        validate_marketing_draft(draft)

        try:
            async with self.session() as session:
                post = await session.get(SourcePost, stored_post_id)
                if post is None:
                    raise NotFoundError(f"Source post {stored_post_id} not found")

                # mismo post, o el mismo título ya analizado desde otro subreddit
                duplicate = await session.execute(
                    select(MarketingIdea.id)
                    .join(SourcePost, MarketingIdea.source_post_id == SourcePost.id)
                    .where(or_(SourcePost.id == post.id, SourcePost.title == post.title))
                    .limit(1)
                )
                if duplicate.scalars().first() is not None:
                    raise ConflictError("Duplicate post detected across subreddits")

                idea = MarketingIdea(source_post_id=stored_post_id, **draft.model_dump())
                session.add(idea)
                await session.commit()
                await session.refresh(idea)
                return idea
        except SQLAlchemyError as e:
            logger.error("DB error saving marketing idea", exc_info=True)
            raise PersistenceError("Error saving marketing idea", error=str(e)) from e

    async def list_marketing_ideas(self, limit: int = 50, offset: int = 0):
        return await self._list(MarketingIdea, limit, offset)

    async def _list(self, model, limit: int, offset: int):
        try:
            async with self.session() as session:
                total = await session.scalar(select(func.count(model.id)))
                result = await session.execute(
                    select(model).order_by(model.created_at.desc(), model.id.desc()).offset(offset).limit(limit)
                )
                return total or 0, result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("DB error listing %s", model.__tablename__, exc_info=True)
            raise PersistenceError("Database error", error=str(e)) from e

    # ------------------------------------------------------------------
    # Bookmarks
    # ------------------------------------------------------------------
    async def toggle_bookmark(self, user_id: str, item_type: str, item_id: int) -> str:
        if item_type not in ITEM_TABLES:
            raise ValidationError(f"Invalid item_type: {item_type}")
        table = ITEM_TABLES[item_type]

        try:
            async with self.session() as session:
                if await session.get(table, item_id) is None:
                    raise NotFoundError(f"Item with id {item_id} not found in {table.__tablename__}")

            return await self._toggle(user_id, item_type, item_id)
        except SQLAlchemyError as e:
            logger.error("DB error toggling bookmark", exc_info=True)
            raise PersistenceError("Error toggling bookmark", error=str(e)) from e

    async def _toggle(self, user_id: str, item_type: str, item_id: int) -> str:
        match = (
            SavedItem.user_id == user_id,
            SavedItem.item_type == item_type,
            SavedItem.item_id == item_id,
        )

        async with self.session() as session:
            try:
                async with session.begin():
                    result = await session.execute(delete(SavedItem).where(*match))
                    if result.rowcount:
                        return "removed"
                    session.add(SavedItem(user_id=user_id, item_type=item_type, item_id=item_id))
                return "added"
            except IntegrityError:
                # Un toggle concurrente insertó primero: este queda serializado detrás.
                logger.warning("Concurrent bookmark toggle for %s/%s/%s", user_id, item_type, item_id)

        async with self.session() as session:
            async with session.begin():
                await session.execute(delete(SavedItem).where(*match))
        return "removed"

    # ------------------------------------------------------------------
    # Saved items
    # ------------------------------------------------------------------
    async def list_saved_items(self, user_id: str) -> List[Dict[str, Any]]:
        try:
            async with self.session() as session:
                result = await session.execute(
                    select(SavedItem).where(SavedItem.user_id == user_id).order_by(SavedItem.created_at.desc(), SavedItem.id.desc())
                )
                saved = result.scalars().all()

                items = []
                for row in saved:
                    table = ITEM_TABLES[ItemType(row.item_type).value]
                    item = await session.get(table, row.item_id)
                    if item is None:
                        continue
                    items.append(self._to_saved_entry(row, item))
        except SQLAlchemyError as e:
            logger.error("DB error listing saved items", exc_info=True)
            raise PersistenceError("Error fetching saved items", error=str(e)) from e

        return items

    @staticmethod
    def _to_saved_entry(row: SavedItem, item) -> Dict[str, Any]:
        if isinstance(item, BusinessIdea):
            title = item.business_idea_name or "Untitled Business Idea"
            category = item.category or "General"
            niche = item.niche
        else:
            title = item.marketing_idea_name or "Untitled Marketing Idea"
            category = item.category or "Marketing"
            niche = None

        analysis = item.full_analysis or ""
        summary = analysis[:SUMMARY_CHARS] + ("..." if len(analysis) > SUMMARY_CHARS else "")
        return {
            "id": item.id,
            "item_type": ItemType(row.item_type).value,
            "title": title,
            "summary": summary or "No description available",
            "category": category,
            "niche": niche,
            "saved_at": row.created_at,
        }

    # ------------------------------------------------------------------
    # User profiles
    # ------------------------------------------------------------------
    async def create_user_profile(self, email: str, password: str, full_name: Optional[str] = None) -> UserProfile:
        email = email.strip().lower()
        try:
            async with self.session() as session:
                existing = await session.execute(select(UserProfile).where(UserProfile.email == email))
                if existing.scalars().first() is not None:
                    raise ConflictError("An account with this email already exists")

                profile = UserProfile(
                    id=str(uuid.uuid4()),
                    email=email,
                    full_name=full_name,
                    password_hash=hash_password(password),
                )
                session.add(profile)
                try:
                    await session.commit()
                except IntegrityError as e:
                    await session.rollback()
                    raise ConflictError("An account with this email already exists") from e
                await session.refresh(profile)
                return profile
        except SQLAlchemyError as e:
            logger.error("DB error creating user profile", exc_info=True)
            raise PersistenceError("Error creating account", error=str(e)) from e
