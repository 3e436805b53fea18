"""Shared fixtures for the CertiChain test suite."""

import pytest

from certichain.config import LedgerSettings
from certichain.blockchain.factory import BlockFactory
from certichain.blockchain.store import CertificateLedger

from tests.helpers import FIXED_TIME, build_chain


@pytest.fixture
def settings():
    return LedgerSettings(nonce_strategy='fixed')


@pytest.fixture
def factory(settings):
    return BlockFactory(settings, clock=lambda: FIXED_TIME)


@pytest.fixture
def chain(factory):
    return build_chain(factory, 4)


@pytest.fixture
def ledger():
    with CertificateLedger(LedgerSettings()) as ledger:
        yield ledger
