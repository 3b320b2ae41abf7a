import logging
import inspect
import sys
import os
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from pydantic import SecretStr

from eboekhouden.client import EboekhoudenClient
from eboekhouden.settings import Settings

FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")


@pytest.fixture(autouse=True)
def log_test_start(request):
    doc = inspect.getdoc(request.node.obj) if hasattr(request.node, "obj") else None
    if doc:
        first_line = doc.splitlines()[0]
        logging.info(f"START {request.node.name} - {first_line}")
    else:
        logging.info(f"START {request.node.name}")
    yield
    logging.info(f"END {request.node.name}")


def ok(operation, **payload):
    """Successful response for ``operation`` with an empty error block."""
    result = {"ErrorMsg": {"LastErrorCode": "", "LastErrorDescription": ""}}
    result.update(payload)
    return {f"{operation}Result": result}


def failed(operation, code, description):
    return {
        f"{operation}Result": {
            "ErrorMsg": {"LastErrorCode": code, "LastErrorDescription": description}
        }
    }


class FakeTransport:
    """Stands in for ``SoapTransport`` and records every call."""

    def __init__(self, responses=None):
        self.responses = {"OpenSession": ok("OpenSession", SessionID="SESSION-1")}
        self.responses.update(responses or {})
        self.calls = []
        self.closed = False

    def call(self, operation, params):
        self.calls.append((operation, params))
        return self.responses[operation]

    def params(self, operation):
        return [p for op, p in self.calls if op == operation][-1]

    def count(self, operation):
        return sum(1 for op, _ in self.calls if op == operation)

    def close(self):
        self.closed = True


@pytest.fixture
def config():
    return Settings(
        _env_file=None,
        wsdl="https://example.test/soap.asmx?WSDL",
        username="tester",
        security_code1=SecretStr("code-1"),
        security_code2=SecretStr("code-2"),
        payment_term=30,
        invoice_template="Standaard",
        email_from_address="facturen@example.test",
        email_from_name="Example BV",
    )


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def client(config, transport):
    factories = []

    def factory(location, timeout=None):
        factories.append(location)
        return transport

    client = EboekhoudenClient(config, transport_factory=factory)
    client.factory_calls = factories
    return client
