from datetime import timedelta
from unittest.mock import MagicMock, patch
import pytest
import requests
from truthnode.enums import SettlementStatus
from truthnode.errors import SinkFailure
from truthnode.integrations.chain import (
    SimulatedChainClient, WebhookSettlementClient, get_settlement_client,
)
from truthnode.models.reward import RewardSettlement, TokenAward
from truthnode.services.reward_ledger import RewardLedger
from truthnode.services.settlement_service import SettlementService
from truthnode.utils.clock import utcnow


class FlakyClient:
    name = 'flaky'

    def __init__(self, failures):
        self.failures = failures
        self.calls = []

    def award_tokens(self, address, amount, reason):
        self.calls.append((address, amount, reason))
        if len(self.calls) <= self.failures:
            raise SinkFailure(self.name, 'node unavailable')
        return f'0x{len(self.calls):064x}'


@pytest.fixture
def queued_award(app, author):
    return RewardLedger().award(author.id, 10, 'Article verified')


class TestSimulatedChain:
    def test_tx_hash_shape(self):
        tx_hash = SimulatedChainClient().award_tokens('0x' + '0' * 40, 5, 'test')
        assert tx_hash.startswith('0x')
        assert len(tx_hash) == 66

    def test_default_client_is_simulated(self, app):
        assert isinstance(get_settlement_client(), SimulatedChainClient)

    def test_webhook_client_when_configured(self):
        client = get_settlement_client({'SETTLEMENT_WEBHOOK_URL': 'https://ledger.example/mint'})
        assert isinstance(client, WebhookSettlementClient)


class TestWebhookClient:
    def test_returns_tx_hash(self):
        response = MagicMock()
        response.raise_for_status = MagicMock()
        response.json.return_value = {'tx_hash': '0xfeed'}
        with patch('truthnode.integrations.chain.requests.post', return_value=response) as post:
            tx_hash = WebhookSettlementClient('https://ledger.example/mint').award_tokens('0x1', 5, 'why')

        assert tx_hash == '0xfeed'
        assert post.call_args.kwargs['json'] == {'address': '0x1', 'amount': 5, 'reason': 'why'}

    def test_http_error_becomes_sink_failure(self):
        with patch('truthnode.integrations.chain.requests.post',
                   side_effect=requests.ConnectionError('refused')):
            with pytest.raises(SinkFailure):
                WebhookSettlementClient('https://ledger.example/mint').award_tokens('0x1', 5, 'why')

    def test_missing_tx_hash_is_failure(self):
        response = MagicMock()
        response.raise_for_status = MagicMock()
        response.json.return_value = {'ok': True}
        with patch('truthnode.integrations.chain.requests.post', return_value=response):
            with pytest.raises(SinkFailure):
                WebhookSettlementClient('https://ledger.example/mint').award_tokens('0x1', 5, 'why')


class TestSettlementDrain:
    def test_successful_settlement_records_tx_ref(self, app, queued_award):
        counts = SettlementService().drain()

        assert counts == {'settled': 1, 'retrying': 0, 'failed': 0}
        award = TokenAward.query.one()
        assert award.external_ref.startswith('0x')
        settlement = RewardSettlement.query.one()
        assert settlement.status is SettlementStatus.SETTLED
        assert settlement.attempts == 1

    def test_uses_ens_address_when_present(self, app, make_user):
        user = make_user(ens_address='james.eth')
        RewardLedger().award(user.id, 5, 'Verification submitted')
        client = FlakyClient(failures=0)

        SettlementService(client=client).drain()
        assert client.calls == [('james.eth', 5, 'Verification submitted')]

    def test_failure_backs_off_without_touching_balance(self, app, author, queued_award):
        service = SettlementService(client=FlakyClient(failures=1))
        now = utcnow()

        counts = service.drain(now=now)
        assert counts['retrying'] == 1
        settlement = RewardSettlement.query.one()
        assert settlement.status is SettlementStatus.PENDING
        assert settlement.attempts == 1
        assert 'node unavailable' in settlement.last_error
        assert author.truth_tokens == 10

        # Not due again until the backoff passes
        assert service.due(now=now - timedelta(seconds=1)) == []
        counts = service.drain(now=now + timedelta(hours=1))
        assert counts['settled'] == 1

    def test_gives_up_after_max_attempts(self, app, queued_award):
        service = SettlementService(client=FlakyClient(failures=100))
        service.max_attempts = 3
        later = utcnow()
        for _ in range(3):
            later += timedelta(hours=1)
            service.drain(now=later)

        settlement = RewardSettlement.query.one()
        assert settlement.status is SettlementStatus.FAILED
        assert settlement.attempts == 3
        assert service.summary()['failed'] == 1

    def test_retry_failed_requeues(self, app, db_session, queued_award):
        settlement = RewardSettlement.query.one()
        settlement.status = SettlementStatus.FAILED
        settlement.attempts = 5
        db_session.commit()

        service = SettlementService()
        assert service.retry_failed() == 1
        settlement = RewardSettlement.query.one()
        assert settlement.status is SettlementStatus.PENDING
        assert settlement.attempts == 0

    def test_unexpected_error_is_contained(self, app, queued_award):
        client = MagicMock()
        client.award_tokens.side_effect = RuntimeError('boom')

        counts = SettlementService(client=client).drain()
        assert counts['retrying'] == 1
        assert 'RuntimeError' in RewardSettlement.query.one().last_error
