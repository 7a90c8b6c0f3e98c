#!/usr/bin/env python3
"""
Register the storefront webhook URL with Pesapal.

Prints the ipn_id to put in PESAPAL_IPN_ID. Run from the backend root:

    python3 scripts/register_pesapal_ipn.py https://shop.example.com/payments/webhook
    python3 scripts/register_pesapal_ipn.py https://shop.example.com/payments/webhook --method GET
    python3 scripts/register_pesapal_ipn.py --list

Credentials and PESAPAL_ENV come from the environment file named by ENV_FILE
(default .env).
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# Add project root to path
project_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(project_root))

env_file = os.environ.get("ENV_FILE", ".env")
load_dotenv(project_root / env_file, override=True)

from libs.common.config import get_settings  # noqa: E402
from services.store_service.errors import GatewayError  # noqa: E402
from services.store_service.pesapal_client import PesapalClient  # noqa: E402


async def list_registered(client: PesapalClient) -> None:
    registrations = await client.list_ipns()
    if not registrations:
        print("No IPN URLs registered.")
        return
    for ipn in registrations:
        print(f"{ipn.ipn_id}  {ipn.notification_type or '-':<5}  {ipn.url}")


async def register(client: PesapalClient, url: str, method: str) -> None:
    registration = await client.register_ipn(url, notification_type=method)
    print("\n✅ IPN registered")
    print("=" * 50)
    print(f"URL:    {registration.url}")
    print(f"Method: {registration.notification_type}")
    print(f"IPN ID: {registration.ipn_id}")
    print("=" * 50)
    print(f"\nAdd this to your environment:\nPESAPAL_IPN_ID={registration.ipn_id}")


async def main() -> int:
    parser = argparse.ArgumentParser(description="Register a Pesapal IPN URL")
    parser.add_argument("url", nargs="?", help="Public URL of /payments/webhook")
    parser.add_argument(
        "--method",
        choices=["GET", "POST"],
        default="POST",
        help="How Pesapal should call the URL (default: POST)",
    )
    parser.add_argument(
        "--list", action="store_true", help="List registered IPN URLs and exit"
    )
    args = parser.parse_args()

    if not args.list and not args.url:
        parser.error("a webhook URL is required unless --list is given")

    settings = get_settings()
    if not settings.PESAPAL_CONSUMER_KEY or not settings.PESAPAL_CONSUMER_SECRET:
        print("❌ PESAPAL_CONSUMER_KEY and PESAPAL_CONSUMER_SECRET must be set")
        return 1

    print(f"Using Pesapal {settings.PESAPAL_ENV} ({settings.pesapal_base_url})")
    client = PesapalClient()

    try:
        if args.list:
            await list_registered(client)
        else:
            await register(client, args.url, args.method)
    except GatewayError as e:
        print(f"❌ {e.message}")
        if e.response_data:
            print(e.response_data)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
