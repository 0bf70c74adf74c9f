"""
Console purchase demo — the purchase card without a browser.

Builds a PurchaseSession for one user against the configured database,
Circle account and EVM node, then buys credits through the chosen wallet.

    python scripts/run_demo.py --user-id <uuid> --credits 25 --wallet circle
    python scripts/run_demo.py --user-id <uuid> --credits 10 --wallet external \
        --address 0xYourUnlockedAccount
"""
import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import settings
from database import async_session, init_db
from domain.enums import WalletType
from domain.errors import DomainError
from domain.payments import ExternalWallet
from evm_client import evm_client
from services import transaction_service, wallet_service
from services.circle_client import build_circle_client
from services.destination_service import DestinationResolver
from services.payment_methods import CustodialWalletPayment, ExternalWalletPayment
from services.purchase_session import PurchaseSession


def section(title):
    print()
    print("=" * 60)
    print(f"  {title}")
    print("=" * 60)


async def run(args: argparse.Namespace) -> int:
    await init_db()
    config = settings.payment_config

    async with async_session() as db:
        resolver = DestinationResolver(config)
        try:
            destination = await resolver.resolve(db)
        except DomainError as e:
            print(f"❌ Configuration Error: {e.message}")
            destination = None

        methods = {}
        wallets = await wallet_service.list_user_wallets(db, args.user_id)
        if wallets:
            chosen = await wallet_service.select_custodial_wallet(db, args.user_id)
            methods[WalletType.CUSTODIAL] = CustodialWalletPayment(
                build_circle_client(),
                wallet_service.to_custodial_wallet(chosen),
                token_id=config.usdc_token_id,
                fee_level=config.fee_level,
                default_decimals=config.default_decimals,
            )
        if args.address:
            methods[WalletType.EXTERNAL] = ExternalWalletPayment(
                evm_client,
                ExternalWallet(chain_id=evm_client.chain_id, address=args.address),
                decimals=config.default_decimals,
            )

        async def recorder(request, result):
            if result.wallet_type == WalletType.CUSTODIAL:
                row = await transaction_service.record_custodial_payment(
                    db, user_id=args.user_id, request=request, result=result
                )
            else:
                row = await transaction_service.record_external_payment(
                    db,
                    user_id=args.user_id,
                    request=request,
                    tx_hash=result.tx_hash,
                    chain_id=evm_client.chain_id,
                    wallet_address=result.wallet_id,
                    destination_address=destination,
                )
            return row.id if row is not None else None

        session = PurchaseSession(
            destination=destination,
            methods=methods,
            recorder=recorder,
            usdc_per_credit=config.usdc_per_credit,
        )
        if args.wallet:
            session.select_wallet(WalletType(args.wallet))
        session.set_credits(args.credits)

        section(f"Balance ({session.wallet_type.value})")
        balance = await session.refresh_balance()
        print(f"  Balance: {balance.amount if balance else 'unavailable'}")
        print(f"  You will pay: {session.required_usdc:.2f} USDC")
        print(f"  Sufficient: {session.sufficient}")

        section("Submit")
        if not session.can_submit:
            print("  Pay action disabled (check destination, wallet and balance)")
        else:
            tx = await session.submit()
            if tx is not None:
                print(f"  Transaction {tx.id} — hash {tx.tx_hash} — {tx.status}")

        for note in session.dismiss():
            print(f"  [{note.level}] {note.title} {note.description}")

        return 0 if session.current_transaction else 1


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--user-id", required=True)
    parser.add_argument("--credits", type=int, default=10)
    parser.add_argument("--wallet", choices=[w.value for w in WalletType])
    parser.add_argument("--address", help="External wallet address (unlocked on the EVM node)")
    args = parser.parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
