import asyncio
from engagement_engine.database import engine, Base

# Import all models here so SQLAlchemy knows them
from engagement_engine.models import Event, Question, Registration, QuizSubmission, AssignmentSubmission  # noqa: F401



async def create_tables():
    async with engine.begin() as conn:
        print("🚀 Creating database tables...")
        await conn.run_sync(Base.metadata.create_all)
        print("✅ All tables created successfully!")


if __name__ == "__main__":
    asyncio.run(create_tables())
