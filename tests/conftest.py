"""Shared fixtures for pre_shared_key tests."""

import pytest

from tls13psk import (
    ClientHandshakeContext, InMemorySessionStore, PskConfiguration, ServerHandshakeContext
)

from .helpers import NOW, fixed_clock, make_session


@pytest.fixture
def config() -> PskConfiguration:
    return PskConfiguration(clock=fixed_clock)


@pytest.fixture
def server_store() -> InMemorySessionStore:
    store = InMemorySessionStore()
    store.add(make_session())
    return store


@pytest.fixture
def client_store() -> InMemorySessionStore:
    store = InMemorySessionStore()
    store.add(make_session())
    return store


@pytest.fixture
def client(config, client_store) -> ClientHandshakeContext:
    return ClientHandshakeContext(
        config=config,
        session_store=client_store,
        resuming_session=client_store.get("example.com", NOW),
    )


@pytest.fixture
def server(config, server_store) -> ServerHandshakeContext:
    return ServerHandshakeContext(config=config, session_store=server_store)
