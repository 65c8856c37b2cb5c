"""Verify database setup: tables and attachment bucket are reachable"""
import asyncio

from supportdesk.database import get_supabase_client
from supportdesk.utils.constants import (
    Credentials,
    PROFILES_TABLE,
    TICKETS_TABLE,
    MESSAGES_TABLE,
    ATTACHMENTS_TABLE,
)
from supportdesk.utils.logging_config import setup_logging

logger = setup_logging()

TABLES = [PROFILES_TABLE, TICKETS_TABLE, MESSAGES_TABLE, ATTACHMENTS_TABLE]


async def main() -> bool:
    credentials = Credentials()
    print(f"Connecting to: {credentials.SUPABASE_URL}")
    print("=" * 60)

    supabase = await get_supabase_client()
    ok = True

    # Check tables exist
    print("\n=== CHECKING TABLES ===")
    for table in TABLES:
        try:
            result = await supabase.table(table).select("*", count="exact").limit(1).execute()
            print(f"  {table}: EXISTS ({result.count} rows)")
            if result.data:
                print(f"    Columns: {list(result.data[0].keys())}")
        except Exception as e:
            ok = False
            print(f"  {table}: ERROR - {e}")
            logger.error(f"Table check failed for {table}: {e}")

    # Check storage bucket
    print("\n=== CHECKING STORAGE ===")
    bucket = credentials.ATTACHMENTS_BUCKET
    try:
        await supabase.storage.from_(bucket).list()
        print(f"  {bucket}: REACHABLE")
    except Exception as e:
        ok = False
        print(f"  {bucket}: ERROR - {e}")
        logger.error(f"Bucket check failed for {bucket}: {e}")

    print("\n" + "=" * 60)
    print("Setup OK" if ok else "Setup has problems, see above")
    return ok


if __name__ == "__main__":
    asyncio.run(main())
