#!/usr/bin/env python3
"""Drain the reward settlement outbox once for testing/debugging."""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from truthnode import create_app
from truthnode.services.settlement_service import SettlementService

if __name__ == '__main__':
    app = create_app()
    limit = int(sys.argv[1]) if len(sys.argv) > 1 else 50

    print(f"Draining up to {limit} settlements...")
    with app.app_context():
        service = SettlementService()
        counts = service.drain(limit=limit)
        print(f"Drain complete: {counts}")
        print(f"Outbox: {service.summary()}")
