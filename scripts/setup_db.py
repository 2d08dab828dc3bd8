"""
Database Setup Script
Validates configuration and creates the vidshare tables
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
ROOT_DIR = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT_DIR))

from vidshare.app.config import get_config, setup_logging, validate_config
from vidshare.app.database import DatabaseManager


async def create_schema(drop_first: bool = False) -> None:
    config = get_config()
    db = DatabaseManager(config)
    try:
        print("\n🔌 Testing database connection...")
        await db.ping()
        print("✅ Database connection successful")

        if drop_first:
            print("\n🧨 Dropping existing tables...")
            await db.drop_tables()

        print("\n📊 Creating database tables...")
        await db.create_tables()
    finally:
        await db.close()


def main():
    """Initialize database and validate configuration"""
    print("=" * 60)
    print("🔧 vidshare - Database Setup")
    print("=" * 60)

    setup_logging()

    print("\n🔍 Validating Configuration...")
    validation = validate_config()

    if not validation["valid"]:
        print("\n❌ Configuration validation failed:")
        for error in validation["errors"]:
            print(f"  - {error}")
        sys.exit(1)

    if validation["warnings"]:
        print("\n⚠️  Configuration warnings:")
        for warning in validation["warnings"]:
            print(f"  - {warning}")

    print(f"\n📦 Using database: {get_config().database.url}")

    try:
        asyncio.run(create_schema(drop_first="--reset" in sys.argv[1:]))

        print("\n" + "=" * 60)
        print("✅ Database setup complete!")
        print("=" * 60)

    except Exception as e:
        print(f"\n❌ Database setup failed: {e}")
        import traceback

        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
