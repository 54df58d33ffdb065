import asyncio
from engagement_engine.database import engine, Base

# Import all models so SQLAlchemy knows them
from engagement_engine.models import Event, Question, Registration, QuizSubmission, AssignmentSubmission  # noqa: F401

async def flush_database():
    async with engine.begin() as conn:
        print("⚠️ Dropping all event tables...")
        await conn.run_sync(Base.metadata.drop_all)
        print("✅ All tables dropped successfully!")

        print("🚀 Recreating tables...")
        await conn.run_sync(Base.metadata.create_all)
        print("✅ All tables recreated successfully!")

if __name__ == "__main__":
    asyncio.run(flush_database())
