from supabase import acreate_client, AsyncClient
import asyncio

from supportdesk.utils.constants import Credentials, TICKETS_TABLE


class SupabaseClientSingleton:
    _instance = None
    _lock = asyncio.Lock()

    @classmethod
    async def get_instance(cls) -> AsyncClient:
        if cls._instance is None:
            async with cls._lock:
                if cls._instance is None:
                    credentials = Credentials()
                    credentials.validate_required_credentials()

                    cls._instance = await acreate_client(
                        credentials.SUPABASE_URL, credentials.SUPABASE_KEY
                    )

        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        cls._instance = None


async def main():
    try:
        print("Attempting to connect to Supabase...")
        client = await SupabaseClientSingleton.get_instance()

        result = await client.table(TICKETS_TABLE).select('id').limit(1).execute()

        print("Successfully connected to Supabase!")
        print(f"Result: {result.data}")
        return True

    except Exception as e:
        print(f"Failed to connect to Supabase: {e}")
        return False


if __name__ == '__main__':
    asyncio.run(main())
