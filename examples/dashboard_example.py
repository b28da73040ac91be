"""Example: log in, list orders and extract a document through the gateway."""

import asyncio

from order_dashboard import ApiError, ClientConfig, DashboardClient, format_validation_errors, get_field_errors


async def main():
    """Walk through a typical dashboard session."""
    config = ClientConfig(api_url="http://localhost:3000")

    async with DashboardClient(config) as client:
        print("Logging in...")
        await client.login("demo", "demo-password")

        orders = await client.get_orders(limit=5)
        print(f"\nFirst orders: {orders}")

        try:
            await client.create_order({"patient_name": ""})
        except ApiError as e:
            # Validation failures come back as one readable line
            field_errors = get_field_errors(e.payload)
            print(f"\nCreate failed ({e.status}): {format_validation_errors(field_errors) if field_errors else e.message}")

        documents = await client.get_documents(limit=1)
        if documents:
            document_id = documents[0]["id"]
            print(f"\nExtracting document {document_id} (this can take a while)...")
            try:
                result = await client.extract_document_data(document_id)
                print(f"Extracted: {result}")
            except ApiError as e:
                print(f"Extraction failed ({e.status}): {e.message}")
                if e.payload and e.payload.get("suggestion"):
                    print(f"Hint: {e.payload['suggestion']}")

        await client.logout()


if __name__ == "__main__":
    asyncio.run(main())
