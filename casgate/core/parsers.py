"""Parsers for the bodies returned by the CAS validation endpoints.

Every parser takes the raw response body and returns an Outcome. None of them
raise: a body that can't be decoded, or that doesn't have the expected shape,
comes back as ``Failure(MALFORMED_RESPONSE)``.
"""
from typing import Any, Dict, List
from xml.parsers.expat import ExpatError

import xmltodict

from ..log import log
from ..models import AttributeValue, Failure, FailureReason, Outcome, Success

# Raised while walking a decoded document that isn't shaped like we expect.
SHAPE_ERRORS = (KeyError, TypeError, AttributeError, IndexError, ValueError)


class MalformedResponse(Exception):
    pass


def _normalize_tag(path, key, value):
    # Attributes (@...) and text (#text) keep their names.
    if key.startswith(("@", "#")):
        return key, value
    return key.split(":")[-1].lower(), value


def decode_xml(body: str) -> Dict[str, Any]:
    """
    Decode an XML body into nested dicts with lower-cased, prefix-free tag names.
    """
    return xmltodict.parse(body or "", postprocessor=_normalize_tag)


def _text(node) -> str:
    if node is None:
        return ""
    if isinstance(node, str):
        return node
    if isinstance(node, dict):
        return node.get("#text") or ""
    raise MalformedResponse(f"Expected a text node, got {type(node).__name__}")


def _as_list(node) -> List[Any]:
    if node is None:
        return []
    if isinstance(node, list):
        return node
    return [node]


def _malformed(detail: str) -> Failure:
    return Failure(FailureReason.MALFORMED_RESPONSE, detail=detail)


def parse_cas1(body: str) -> Outcome:
    lines = [line.rstrip("\r") for line in (body or "").split("\n")]
    if lines[0] == "yes" and len(lines) >= 2 and lines[1]:
        return Success(principal=lines[1], attributes={})
    if lines[0] == "no":
        return Failure(FailureReason.REMOTE_REJECTED)
    return _malformed("Invalid response from CAS server.")


def _service_attributes(node) -> Dict[str, AttributeValue]:
    if node is None:
        return {}
    if not isinstance(node, dict):
        raise MalformedResponse("cas:attributes is not an element")

    attributes = {}
    for name, value in node.items():
        if name.startswith(("@", "#")):
            continue
        if isinstance(value, list):
            attributes[name] = [_text(v) for v in value]
        else:
            attributes[name] = _text(value)
    return attributes


def parse_service_response(body: str) -> Outcome:
    """
    Parse a CAS 2.0 / 3.0 ``serviceResponse`` document.

    The ``attributes`` element is read for both versions; CAS 2.0 servers
    normally don't send it, in which case the attributes come back empty.
    """
    try:
        document = decode_xml(body)
    except (ExpatError, ValueError) as e:
        log.debug("Undecodable CAS response: %s", e)
        return _malformed("Response from CAS server was bad.")

    try:
        response = document["serviceresponse"]
        if not isinstance(response, dict):
            raise MalformedResponse("serviceResponse is empty")

        if "authenticationfailure" in response:
            failure = response["authenticationfailure"]
            code = failure.get("@code") if isinstance(failure, dict) else None
            return Failure(
                FailureReason.REMOTE_REJECTED,
                code=code,
                detail=_text(failure).strip(),
            )

        success = response.get("authenticationsuccess")
        if not isinstance(success, dict):
            raise MalformedResponse("Neither success nor failure in response")

        user = _text(success["user"])
        if not user:
            raise MalformedResponse("Empty cas:user")
        return Success(
            principal=user,
            attributes=_service_attributes(success.get("attributes")),
        )
    except (MalformedResponse,) + SHAPE_ERRORS as e:
        log.debug("Unexpected CAS response shape: %r", e)
        return _malformed("Invalid response from CAS server.")


parse_cas2 = parse_service_response
parse_cas3 = parse_service_response


def _saml_attribute_value(attribute) -> AttributeValue:
    values = attribute.get("attributevalue")
    if isinstance(values, list):
        return [_text(v) for v in values]
    return _text(values)


def _saml_attributes(statement) -> Dict[str, AttributeValue]:
    if statement is None:
        return {}

    attributes = {}
    for attribute in _as_list(statement.get("attribute")):
        attributes[attribute["@AttributeName"]] = _saml_attribute_value(attribute)
    return attributes


def _saml_status(response) -> str:
    value = response["status"]["statuscode"]["@Value"]
    return value.split(":")[1]


def parse_saml11(body: str) -> Outcome:
    """Parse a SAML 1.1 ``samlValidate`` SOAP response."""
    try:
        document = decode_xml(body)
    except (ExpatError, ValueError) as e:
        log.debug("Undecodable SAML response: %s", e)
        return _malformed("Invalid response from CAS server.")

    try:
        response = document["envelope"]["body"]["response"]
        status = _saml_status(response)
        if status != "Success":
            return Failure(FailureReason.REMOTE_REJECTED, code=status)

        assertion = response["assertion"]
        principal = _text(
            assertion["authenticationstatement"]["subject"]["nameidentifier"]
        ).strip()
        if not principal:
            raise MalformedResponse("Empty NameIdentifier")
        return Success(
            principal=principal,
            attributes=_saml_attributes(assertion.get("attributestatement")),
        )
    except (MalformedResponse,) + SHAPE_ERRORS as e:
        log.debug("Unexpected SAML response shape: %r", e)
        return _malformed("Invalid response from CAS server.")
