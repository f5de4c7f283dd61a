# goldmines/scripts/seed_marketing_ideas.py
import asyncio
import time

from sqlmodel import select
from sqlalchemy.exc import SQLAlchemyError

from goldmines.core.logger import logger
from goldmines.core.settings import settings
from goldmines.db.gateway import PersistenceGateway
from goldmines.db.models import MarketingIdea
from goldmines.ingest.schemas import SourcePostIn

SEED_POST = SourcePostIn(
    external_id="seed_marketing_1",
    title="How we got our first 100 customers from a niche newsletter",
    body="We sponsored three small newsletters in our niche instead of running ads.",
    feed="marketing",
    author="seed",
    created_utc=time.time(),
)


async def seed_marketing_ideas(gateway: PersistenceGateway) -> int:
    """Inserta ideas de marketing de ejemplo de forma idempotente."""
    post = await gateway.save_source_post(SEED_POST)

    async with gateway.session() as session:
        try:
            result = await session.execute(
                select(MarketingIdea).where(MarketingIdea.source_post_id == post.id)
            )
            if result.scalars().first():
                logger.info("⚠️ Ya existen ideas de marketing de ejemplo")
                return 0

            ideas = [
                MarketingIdea(
                    source_post_id=post.id,
                    marketing_idea_name="Micro-newsletter sponsorship ladder",
                    idea_description="Sponsor small niche newsletters and reinvest in the ones that convert.",
                    channel=["Newsletters"],
                    target_audience=["Early-stage B2B founders"],
                    potential_impact="High",
                    implementation_tips=["Start with three newsletters", "Use a unique landing page per sponsor"],
                    success_metrics=["Cost per signup", "Trial to paid conversion"],
                    full_analysis=(
                        "Small newsletters have engaged audiences and cheap placements. Testing several "
                        "in parallel gives quick signal on which audience converts before scaling spend."
                    ),
                ),
            ]
            session.add_all(ideas)
            await session.commit()

            logger.info("✅ Insertadas %s ideas de marketing", len(ideas))
            return len(ideas)

        except SQLAlchemyError as e:
            logger.error("❌ Error al insertar ideas de marketing: %s", e, exc_info=True)
            await session.rollback()
            return 0


async def main():
    gateway = PersistenceGateway(settings.database_url, create_schema=settings.auto_create_schema)
    await gateway.open()
    try:
        await seed_marketing_ideas(gateway)
    finally:
        await gateway.close()


if __name__ == "__main__":
    asyncio.run(main())
