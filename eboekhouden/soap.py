"""Minimal SOAP 1.1 document/literal transport.

The envelope is built and parsed with lxml and sent with httpx. Only the
parts of the service description the client needs are read: the target
namespace, the endpoint address and the ``soapAction`` of each operation.
"""

from __future__ import annotations

import logging
import time
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping

import httpx
from lxml import etree

from eboekhouden.errors import SoapFaultError, TransportError

logger = logging.getLogger(__name__)

SOAP_ENV_NS = "http://schemas.xmlsoap.org/soap/envelope/"
WSDL_NS = "http://schemas.xmlsoap.org/wsdl/"
WSDL_SOAP_NS = "http://schemas.xmlsoap.org/wsdl/soap/"


def _localname(element: etree._Element) -> str:
    return etree.QName(element).localname


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat(timespec="seconds")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def build_element(parent: etree._Element, name: str, value: Any, ns: str) -> None:
    """Append ``value`` below ``parent`` as element(s) called ``name``.

    Mappings become nested elements, lists become repeated elements with the
    same name and ``None`` becomes an empty element.
    """
    if isinstance(value, (list, tuple)):
        for item in value:
            build_element(parent, name, item, ns)
        return
    child = etree.SubElement(parent, f"{{{ns}}}{name}")
    if isinstance(value, Mapping):
        for key, item in value.items():
            build_element(child, key, item, ns)
    elif value is not None:
        child.text = _format_value(value)


def element_to_data(element: etree._Element) -> Any:
    """Convert an XML element to plain python data.

    A child that occurs once is stored as a single value, a child that
    occurs several times as a list. Leaves become their text.
    """
    children = [c for c in element if isinstance(c.tag, str)]
    if not children:
        return element.text or ""
    data: dict[str, Any] = {}
    for child in children:
        key = _localname(child)
        value = element_to_data(child)
        if key not in data:
            data[key] = value
        elif isinstance(data[key], list):
            data[key].append(value)
        else:
            data[key] = [data[key], value]
    return data


def build_envelope(operation: str, params: Mapping[str, Any], ns: str) -> bytes:
    envelope = etree.Element(f"{{{SOAP_ENV_NS}}}Envelope", nsmap={"soap": SOAP_ENV_NS})
    body = etree.SubElement(envelope, f"{{{SOAP_ENV_NS}}}Body")
    wrapper = etree.SubElement(body, f"{{{ns}}}{operation}", nsmap={None: ns})
    for key, value in params.items():
        build_element(wrapper, key, value, ns)
    return etree.tostring(envelope, xml_declaration=True, encoding="utf-8")


def parse_envelope(content: bytes, operation: str) -> dict[str, Any]:
    """Return the ``<operation>Response`` element of a SOAP reply as data."""
    try:
        root = etree.fromstring(content)
    except etree.XMLSyntaxError as exc:
        raise SoapFaultError(
            f"Invalid XML in response to {operation}", operation=operation
        ) from exc

    body = root.find(f"{{{SOAP_ENV_NS}}}Body")
    if body is None:
        raise SoapFaultError(f"No SOAP body in response to {operation}", operation=operation)

    fault = body.find(f"{{{SOAP_ENV_NS}}}Fault")
    if fault is not None:
        code = fault.findtext("faultcode") or ""
        message = fault.findtext("faultstring") or "SOAP fault"
        raise SoapFaultError(message, operation=operation, code=code)

    for child in body:
        if isinstance(child.tag, str) and _localname(child) == f"{operation}Response":
            data = element_to_data(child)
            return data if isinstance(data, dict) else {}
    raise SoapFaultError(f"No {operation}Response in SOAP body", operation=operation)


def _read_description(location: str, http: httpx.Client) -> tuple[str, str, dict[str, str]]:
    """Return endpoint, target namespace and soapAction per operation."""
    if location.startswith(("http://", "https://")):
        try:
            response = http.get(location)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise TransportError(f"Cannot load service description {location}: {exc}") from exc
        content = response.content
    else:
        try:
            content = Path(location).read_bytes()
        except OSError as exc:
            raise TransportError(f"Cannot load service description {location}: {exc}") from exc

    try:
        root = etree.fromstring(content)
    except etree.XMLSyntaxError as exc:
        raise TransportError(f"Malformed service description {location}: {exc}") from exc

    namespace = root.get("targetNamespace")
    address = root.find(f"{{{WSDL_NS}}}service/{{{WSDL_NS}}}port/{{{WSDL_SOAP_NS}}}address")
    if not namespace or address is None or not address.get("location"):
        raise TransportError(f"No SOAP 1.1 endpoint in service description {location}")

    actions: dict[str, str] = {}
    for binding in root.iterfind(f"{{{WSDL_NS}}}binding"):
        if binding.find(f"{{{WSDL_SOAP_NS}}}binding") is None:
            continue
        for op in binding.iterfind(f"{{{WSDL_NS}}}operation"):
            soap_op = op.find(f"{{{WSDL_SOAP_NS}}}operation")
            action = soap_op.get("soapAction", "") if soap_op is not None else ""
            actions[op.get("name")] = action

    logger.debug(
        "Loaded service description: endpoint=%s operations=%d",
        address.get("location"),
        len(actions),
    )
    return address.get("location"), namespace, actions


class SoapTransport:
    """Calls operations of one SOAP service.

    An ``httpx.Client`` passed in by the caller stays open on :meth:`close`;
    one the transport created itself is closed with it.
    """

    def __init__(
        self,
        endpoint: str,
        namespace: str,
        actions: Mapping[str, str],
        *,
        http: httpx.Client | None = None,
        timeout: float = 10.0,
        owns_http: bool = False,
    ) -> None:
        self.endpoint = endpoint
        self.namespace = namespace
        self.actions = dict(actions)
        self._owns_http = http is None or owns_http
        self._http = http or httpx.Client(timeout=timeout)

    @classmethod
    def from_wsdl(
        cls,
        location: str,
        *,
        http: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> "SoapTransport":
        """Read endpoint, namespace and operations from a service description."""
        owns_http = http is None
        http = http or httpx.Client(timeout=timeout)
        try:
            endpoint, namespace, actions = _read_description(location, http)
        except Exception:
            if owns_http:
                http.close()
            raise
        return cls(endpoint, namespace, actions, http=http, owns_http=owns_http)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "SoapTransport":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def call(self, operation: str, params: Mapping[str, Any]) -> dict[str, Any]:
        """Invoke ``operation`` and return its response element as data."""
        if operation not in self.actions:
            raise SoapFaultError(
                f"Operation {operation} is not offered by the service", operation=operation
            )
        payload = build_envelope(operation, params, self.namespace)
        headers = {
            "Content-Type": "text/xml; charset=utf-8",
            "SOAPAction": f'"{self.actions[operation]}"',
        }
        start = time.perf_counter()
        try:
            response = self._http.post(self.endpoint, content=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise SoapFaultError(f"{operation} failed: {exc}", operation=operation) from exc
        logger.debug("%s took %.3f s", operation, time.perf_counter() - start)

        # Faults come back with status 500 and a regular envelope
        if response.status_code >= 400 and b"Fault" not in response.content:
            raise SoapFaultError(
                f"HTTP {response.status_code} for {operation}",
                operation=operation,
                code=str(response.status_code),
            )
        return parse_envelope(response.content, operation)
