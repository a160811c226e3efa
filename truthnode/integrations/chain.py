"""
Settlement clients for the external token ledger.
Only simulated and webhook-backed clients exist; nothing here signs or
submits a real chain transaction.
"""
import logging
import secrets
import requests
from flask import current_app
from truthnode.errors import SinkFailure

logger = logging.getLogger(__name__)


def generate_address():
    return f"0x{secrets.token_hex(20)}"


def generate_tx_hash():
    return f"0x{secrets.token_hex(32)}"


class SimulatedChainClient:
    name = 'simulated_chain'

    def award_tokens(self, address, amount, reason):
        tx_hash = generate_tx_hash()
        logger.info(f"[Chain] Simulated award of {amount} tokens to {address} for {reason}: {tx_hash}")
        return tx_hash


class WebhookSettlementClient:
    name = 'settlement_webhook'

    def __init__(self, url, timeout=10):
        self.url = url
        self.timeout = timeout

    def award_tokens(self, address, amount, reason):
        try:
            resp = requests.post(self.url, json={
                'address': address,
                'amount': amount,
                'reason': reason,
            }, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise SinkFailure(self.name, str(e)) from e

        tx_hash = data.get('tx_hash') if isinstance(data, dict) else None
        if not tx_hash:
            raise SinkFailure(self.name, f"response missing tx_hash: {data!r}")
        return tx_hash


def get_settlement_client(app_config=None):
    config = app_config or current_app.config
    url = config.get('SETTLEMENT_WEBHOOK_URL')
    if url:
        return WebhookSettlementClient(url, timeout=config.get('SETTLEMENT_WEBHOOK_TIMEOUT', 10))
    return SimulatedChainClient()
