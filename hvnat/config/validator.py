# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# hvnat/config/validator.py
"""
Network document validation.

Turns a parsed JSON/YAML document into a ReconciliationConfig, or raises
ValidationError on the first violated constraint. Nothing is returned on
failure, so no host mutation can start from a half-valid document.
"""
from __future__ import annotations

import ipaddress
import re
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from ..core.exceptions import ValidationError
from .model import (
    Action,
    NetworkSpec,
    PortForwardingRule,
    Protocol,
    ReconciliationConfig,
    VmHint,
    default_gateway,
)

_CIDR_RE = re.compile(r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})/(\d{1,2})$")
_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9 ._-]*$")

# A NAT network needs at least a gateway and one guest address.
MAX_PREFIX_LENGTH = 30
MIN_PORT = 1
MAX_PORT = 65535


def _fail(field: str, msg: str) -> ValidationError:
    return ValidationError(msg=f"{field}: {msg}", field=field)


def _require_mapping(obj: Any, field: str) -> Mapping[str, Any]:
    if not isinstance(obj, Mapping):
        raise _fail(field, f"expected an object, got {type(obj).__name__}")
    return obj


def _require_str(obj: Mapping[str, Any], key: str, field: str) -> str:
    v = obj.get(key)
    if v is None:
        raise _fail(field, "is required")
    if not isinstance(v, str) or not v.strip():
        raise _fail(field, "must be a non-empty string")
    return v.strip()


def _optional_list(obj: Mapping[str, Any], key: str, field: str) -> List[Any]:
    v = obj.get(key)
    if v is None:
        return []
    if not isinstance(v, list):
        raise _fail(field, f"expected a list, got {type(v).__name__}")
    return v


def parse_cidr(text: str, field: str = "network.subnet") -> ipaddress.IPv4Network:
    """
    Accepts strictly `A.B.C.D/N`. Host bits are dropped, so
    192.168.100.7/24 becomes 192.168.100.0/24.
    """
    m = _CIDR_RE.match(text.strip())
    if not m:
        raise _fail(field, f"{text!r} is not in A.B.C.D/N form")
    octets = [int(x) for x in m.groups()[:4]]
    prefix = int(m.group(5))
    if any(o > 255 for o in octets):
        raise _fail(field, f"{text!r} has an octet above 255")
    if prefix > 32:
        raise _fail(field, f"{text!r} has a prefix length above 32")
    if prefix > MAX_PREFIX_LENGTH:
        raise _fail(field, f"prefix /{prefix} leaves no room for a gateway and guests (max /{MAX_PREFIX_LENGTH})")
    try:
        return ipaddress.IPv4Network(text.strip(), strict=False)
    except ValueError as e:
        raise _fail(field, f"{text!r} is not a valid CIDR: {e}")


def parse_ipv4(value: Any, field: str) -> ipaddress.IPv4Address:
    if not isinstance(value, str) or not value.strip():
        raise _fail(field, "must be an IPv4 address string")
    try:
        return ipaddress.IPv4Address(value.strip())
    except ValueError:
        raise _fail(field, f"{value!r} is not a valid IPv4 address")


def parse_port(value: Any, field: str) -> int:
    # bool is an int subclass; "true" is never a port.
    if isinstance(value, bool) or not isinstance(value, int):
        raise _fail(field, f"must be an integer, got {value!r}")
    if value < MIN_PORT or value > MAX_PORT:
        raise _fail(field, f"{value} is outside {MIN_PORT}-{MAX_PORT}")
    return value


def parse_action(value: Any, field: str = "action") -> Action:
    if value is None:
        return Action.APPLY
    if isinstance(value, Action):
        return value
    if isinstance(value, str):
        try:
            return Action(value.strip().lower())
        except ValueError:
            pass
    raise _fail(field, f"{value!r} is not one of {', '.join(a.value for a in Action)}")


def parse_protocol(value: Any, field: str) -> Protocol:
    if isinstance(value, str):
        try:
            return Protocol(value.strip().upper())
        except ValueError:
            pass
    raise _fail(field, f"{value!r} is not one of {', '.join(p.value for p in Protocol)}")


def _validate_network(obj: Any) -> NetworkSpec:
    net = _require_mapping(obj, "network")
    name = _require_str(net, "name", "network.name")
    if not _NAME_RE.match(name):
        raise _fail("network.name", f"{name!r} may only contain letters, digits, spaces, '.', '_' and '-'")

    subnet = parse_cidr(_require_str(net, "subnet", "network.subnet"))

    gw_raw = net.get("gateway")
    if gw_raw is None or (isinstance(gw_raw, str) and not gw_raw.strip()):
        gateway = default_gateway(subnet)
    else:
        gateway = parse_ipv4(gw_raw, "network.gateway")
        if gateway not in subnet:
            raise _fail("network.gateway", f"{gateway} is outside {subnet}")
        if gateway in (subnet.network_address, subnet.broadcast_address):
            raise _fail("network.gateway", f"{gateway} is the network or broadcast address of {subnet}")

    return NetworkSpec(name=name, subnet=subnet, gateway=gateway)


def _validate_rule(obj: Any, idx: int) -> PortForwardingRule:
    base = f"portForwarding[{idx}]"
    rule = _require_mapping(obj, base)
    return PortForwardingRule(
        name=_require_str(rule, "name", f"{base}.name"),
        protocol=parse_protocol(rule.get("protocol"), f"{base}.protocol"),
        external_port=parse_port(rule.get("externalPort"), f"{base}.externalPort"),
        internal_ip=parse_ipv4(rule.get("internalIP"), f"{base}.internalIP"),
        internal_port=parse_port(rule.get("internalPort"), f"{base}.internalPort"),
    )


def _validate_vm(obj: Any, idx: int) -> VmHint:
    base = f"vms[{idx}]"
    vm = _require_mapping(obj, base)
    memo = vm.get("memo")
    if memo is not None and not isinstance(memo, str):
        raise _fail(f"{base}.memo", "must be a string")
    return VmHint(
        name=_require_str(vm, "name", f"{base}.name"),
        ip=parse_ipv4(vm.get("ip"), f"{base}.ip"),
        memo=memo or None,
    )


def validate_document(doc: Any, *, source: Optional[str] = None) -> ReconciliationConfig:
    """Validate a parsed document; raises ValidationError on the first problem."""
    root = _require_mapping(doc, "document")

    action = parse_action(root.get("action"))
    if "network" not in root:
        raise _fail("network", "is required")
    network = _validate_network(root.get("network"))

    rules: List[PortForwardingRule] = []
    seen: Set[Tuple[str, int]] = set()
    for idx, raw in enumerate(_optional_list(root, "portForwarding", "portForwarding")):
        rule = _validate_rule(raw, idx)
        if rule.key in seen:
            raise _fail(
                f"portForwarding[{idx}].externalPort",
                f"{rule.protocol.value} port {rule.external_port} is already forwarded by another rule",
            )
        seen.add(rule.key)
        rules.append(rule)

    vms = [_validate_vm(raw, idx) for idx, raw in enumerate(_optional_list(root, "vms", "vms"))]

    return ReconciliationConfig(
        action=action,
        network=network,
        port_forwarding=tuple(rules),
        vms=tuple(vms),
        source=source,
    )


def merge_action_override(doc: Dict[str, Any], action: Optional[str]) -> Dict[str, Any]:
    """CLI --action wins over the document's `action`."""
    if not action:
        return doc
    merged = dict(doc)
    merged["action"] = action
    return merged
