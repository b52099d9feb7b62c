#!/usr/bin/env python3
"""
Sponsor a forward request through the Gelato relay.
"""
import os

from gelato_sdk import ForwardRequestBuilder, GelatoError, LocalSigner, PaymentType, RelayClient


def main():
    """
    Demonstrate basic usage of the RelayClient.

    This example shows how to:
    1. Build a forward request paid from the sponsor's Gas Tank
    2. Sign it as the sponsor
    3. Submit it and wait for execution
    """
    # Read configuration from environment
    SPONSOR_KEY = os.environ.get("SPONSOR_KEY")
    TARGET = os.environ.get("TARGET_CONTRACT")
    CHAIN_ID = int(os.environ.get("CHAIN_ID", "5"))

    if not SPONSOR_KEY or not TARGET:
        print("ERROR: SPONSOR_KEY and TARGET_CONTRACT environment variables are required")
        return

    sponsor = LocalSigner(SPONSOR_KEY)
    builder = (
        ForwardRequestBuilder(chain_id=CHAIN_ID, payment_type=PaymentType.ASYNC_GAS_TANK)
        .update(target=TARGET, data="0x", gas=200_000, nonce=0)
        .sponsored_by(sponsor)
    )

    with RelayClient() as client:
        try:
            max_fee = client.estimate_fee(CHAIN_ID, gas_limit=200_000)
            signed = builder.update(max_fee=max_fee * 2).build_signed()
            task_id = client.send_forward_request(signed)
            print(f"Submitted task {task_id}")

            execution = client.wait_for_task(task_id)
            print(f"Executed in transaction {execution.transaction_hash} (block {execution.block_number})")
        except GelatoError as e:
            print(f"Relay failed: {e}")


if __name__ == "__main__":
    main()
