"""
Sync Clobber Simulation

Spins up several in-process clients that share one in-memory remote mirror,
has each of them place orders concurrently, and reports how many orders
survive whole-document last-writer-wins reconciliation.

Run from project root: python scripts/simulate.py --clients 3 --orders 5

Author: Khalil Bannouri
Version: 4.0.0
"""

import argparse
import asyncio
import os
import random
import sys
import tempfile
import time
from datetime import datetime
from pathlib import Path
from typing import Any

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.config import get_settings, setup_logging  # noqa: E402
from app.services.local_store import LocalStore  # noqa: E402
from app.services.remote.memory import InMemoryRemoteMirror  # noqa: E402
from app.state import AppState  # noqa: E402

CUSTOMER_NAMES = ["Ali Ahmed", "Sana Khan", "Bilal Raza", "Ayesha Malik", "Hamza Sheikh", "Fatima Noor"]
AREAS = ["Clifton", "DHA Phase 5", "Gulshan-e-Iqbal", "PECHS", "North Nazimabad", "Saddar"]


def random_phone() -> str:
    return f"03{random.randint(0, 4)}{random.randint(1000000, 9999999)}"


async def run_client(state: AppState, client_num: int, num_orders: int) -> list[str]:
    """Log in, then repeatedly fill the cart and check out."""
    phone = random_phone()
    state.login_customer(phone)
    placed = []

    for _ in range(num_orders):
        state.add_menu_item_to_cart("1", "m1")
        if random.random() < 0.5:
            state.add_menu_item_to_cart("1", "m2")

        order = state.place_order(
            customer_name=random.choice(CUSTOMER_NAMES),
            address=f"House {random.randint(1, 200)}, {random.choice(AREAS)}, Karachi",
        )
        placed.append(order.id)
        # Let remote writes and echoes interleave between clients.
        await asyncio.sleep(random.uniform(0, 0.02))

    print(f"   Client {client_num}: placed {len(placed)} orders as {phone}")
    return placed


async def run_simulation(num_clients: int, num_orders: int) -> dict[str, Any]:
    print("=" * 70)
    print("🔥 SYNC SIMULATION - CONCURRENT CLIENTS, ONE SHARED DOCUMENT")
    print("=" * 70)
    print(f"📋 Clients: {num_clients}  Orders per client: {num_orders}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    settings = get_settings()
    mirror = InMemoryRemoteMirror(min_latency=0.001, max_latency=0.01)
    start_time = time.time()

    with tempfile.TemporaryDirectory() as root:
        clients = [
            AppState(
                settings=settings,
                store=LocalStore(directory=Path(root) / f"client-{i}"),
                remote=mirror,
            )
            for i in range(num_clients)
        ]
        for state in clients:
            await state.start()

        print("\n🚀 Placing orders...\n")
        placed = await asyncio.gather(
            *(run_client(state, i + 1, num_orders) for i, state in enumerate(clients))
        )

        for state in clients:
            await state.gateway.flush()
        # One more turn so the last echoes are delivered.
        await asyncio.sleep(0.05)

        remote_orders = {o["id"] for o in (await mirror.read() or {}).get("orders", [])}
        all_placed = [order_id for batch in placed for order_id in batch]
        survivors = [order_id for order_id in all_placed if order_id in remote_orders]
        converged = len({state.snapshot.timestamp for state in clients}) == 1

        for state in clients:
            await state.close()

    total_time = round(time.time() - start_time, 2)

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Orders in shared document: {len(survivors)}/{len(all_placed)}")
    print(f"❌ Orders lost to overwrites: {len(all_placed) - len(survivors)}")
    print(f"🔁 Remote writes: {mirror.write_count}")
    print(f"🤝 Clients converged on one snapshot: {'yes' if converged else 'no'}")
    print(f"⏱️  Total Time: {total_time}s")
    print("=" * 70)

    return {
        "placed": len(all_placed),
        "survived": len(survivors),
        "remote_writes": mirror.write_count,
        "converged": converged,
        "total_time": total_time,
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Simulate concurrent clients syncing one document")
    parser.add_argument("--clients", type=int, default=3, help="Number of concurrent clients")
    parser.add_argument("--orders", type=int, default=5, help="Orders placed by each client")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for repeatable runs")
    args = parser.parse_args()

    if args.seed is not None:
        random.seed(args.seed)

    setup_logging()
    asyncio.run(run_simulation(args.clients, args.orders))


if __name__ == "__main__":
    main()
