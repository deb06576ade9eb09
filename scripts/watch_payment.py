#!/usr/bin/env python3
"""
Watch a mobile money payment until it succeeds, fails or times out.
Prints every state change of the verification poller.

Usage (from repo root):
  python scripts/watch_payment.py --transaction-id 4800001 --method mtn_momo \
      --phone 677000000 --amount 10000
  python scripts/watch_payment.py --transaction-id demo --method orange_money \
      --mock pending,pending,success
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from payverify.integrations.clients.mocks.verification import ScriptedVerificationClient
from payverify.integrations.clients.real_http.verification import RealVerificationClient
from payverify.integrations.contracts.interfaces import PaymentMethod, PaymentVerification
from payverify.poller import PaymentVerificationPoller, PollSnapshot, PollState
from payverify.utils.config_loader import load_verification_config


def setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Poll the verify endpoint for a mobile money payment")
    parser.add_argument("--transaction-id", required=True)
    parser.add_argument("--method", choices=[m.value for m in PaymentMethod], default=PaymentMethod.MTN_MOMO.value)
    parser.add_argument("--phone", default="")
    parser.add_argument("--amount", type=float, default=0.0)
    parser.add_argument("--config", type=Path, default=None, help="Path to verification_config.yml")
    parser.add_argument("--mock", default=None,
                        help="Comma-separated scripted statuses instead of calling the API, e.g. pending,success")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def print_snapshot(snapshot: PollSnapshot):
    line = f"[{snapshot.elapsed:6.1f}s] {snapshot.title}: {snapshot.message} (checks={snapshot.polling_count})"
    if snapshot.warning:
        line += f" ⚠️  {snapshot.warning}"
    if snapshot.navigated:
        line += " → done"
    print(line)


async def main(argv=None) -> int:
    load_dotenv()
    args = parse_args(argv)
    setup_logging(args.verbose)
    cfg = load_verification_config(args.config)

    if args.mock:
        verifier = ScriptedVerificationClient([s.strip() for s in args.mock.split(",") if s.strip()])
    else:
        verifier = RealVerificationClient(
            base_url=cfg.api.base_url or None,
            api_key=cfg.api.api_key or None,
            verify_path=cfg.api.verify_path,
            timeout_seconds=cfg.polling.request_timeout_seconds,
        )

    verification = PaymentVerification(
        transaction_id=args.transaction_id,
        payment_method=PaymentMethod(args.method),
        phone_number=args.phone,
        amount=args.amount,
    )
    poller = PaymentVerificationPoller(
        verification,
        verifier,
        config=cfg.polling,
        destination=cfg.api.success_destination,
        on_change=print_snapshot,
    )
    operator = poller.operator
    print(f"Approve the prompt on {operator.name} (dial {operator.ussd_code} if it does not appear)")

    async with poller:
        snapshot = await poller.wait()
    return 0 if snapshot.state is PollState.SUCCESS else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
