"""
Seed the wallets tables for a local demo.

Creates (or updates) the platform admin wallet and registers a custodial
Circle wallet for a user, so /api/circle/payment has something to work with.

Run from the backend/ directory:
    python scripts/seed_wallets.py \
        --admin-address 0xAdmin... --admin-chain ETH-SEPOLIA \
        --user-id <supabase user uuid> --circle-wallet-id <uuid> \
        --wallet-address 0xUser... --blockchain ETH-SEPOLIA
"""
import argparse
import asyncio
import os
import sys

# Add backend/ to path so we can import config
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from config import settings
from database import async_session, init_db
from db_models import AdminWallet, Wallet


async def seed(args: argparse.Namespace) -> None:
    await init_db()

    async with async_session() as db:
        label = args.admin_label or settings.admin_wallet_label
        result = await db.execute(select(AdminWallet).where(AdminWallet.label == label))
        admin = result.scalar_one_or_none()
        if admin is None:
            admin = AdminWallet(label=label, address=args.admin_address, chain=args.admin_chain)
            db.add(admin)
            print(f"➕ Admin wallet '{label}' created: {args.admin_address}")
        else:
            admin.address = args.admin_address
            admin.chain = args.admin_chain
            print(f"🔁 Admin wallet '{label}' updated: {args.admin_address}")

        if args.user_id and args.circle_wallet_id:
            result = await db.execute(
                select(Wallet).where(Wallet.circle_wallet_id == args.circle_wallet_id)
            )
            if result.scalar_one_or_none() is None:
                db.add(
                    Wallet(
                        user_id=args.user_id,
                        circle_wallet_id=args.circle_wallet_id,
                        blockchain=args.blockchain,
                        address=args.wallet_address,
                        type=args.wallet_type,
                        name=args.wallet_name,
                    )
                )
                print(f"➕ Custodial wallet {args.circle_wallet_id} registered for {args.user_id}")
            else:
                print(f"✅ Custodial wallet {args.circle_wallet_id} already registered")

        await db.commit()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--admin-address", required=True)
    parser.add_argument("--admin-chain", default="ETH-SEPOLIA")
    parser.add_argument("--admin-label", default=None)
    parser.add_argument("--user-id")
    parser.add_argument("--circle-wallet-id")
    parser.add_argument("--wallet-address", default="")
    parser.add_argument("--blockchain", default="ETH-SEPOLIA")
    parser.add_argument("--wallet-type", default="SCA")
    parser.add_argument("--wallet-name", default="Demo wallet")
    args = parser.parse_args()

    if settings.database_url.startswith("sqlite:///./data/"):
        os.makedirs("data", exist_ok=True)
    asyncio.run(seed(args))


if __name__ == "__main__":
    main()
