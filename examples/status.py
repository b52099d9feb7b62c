#!/usr/bin/env python3
"""
Print the status of a relay task.

Usage: python status.py <task-id>
"""
import sys

from gelato_sdk import RelayClient


def main():
    if len(sys.argv) != 2:
        print(__doc__)
        return 1

    with RelayClient() as client:
        status = client.task_status(sys.argv[1])
    print(f"Task status: {status.task_state.value}")
    if status.execution:
        print(f"Transaction hash: {status.execution.transaction_hash}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
