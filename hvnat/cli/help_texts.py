# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# hvnat/cli/help_texts.py
from __future__ import annotations

# Pure help text for the argparse epilog; keep it copy/paste runnable.

JSON_EXAMPLE = r"""{
  "action": "apply",
  "network": {
    "name": "DevNet",
    "subnet": "192.168.100.0/24",
    "gateway": "192.168.100.1"
  },
  "portForwarding": [
    { "name": "web-http", "protocol": "TCP", "externalPort": 8080,
      "internalIP": "192.168.100.10", "internalPort": 80 },
    { "name": "dns",      "protocol": "UDP", "externalPort": 5353,
      "internalIP": "192.168.100.11", "internalPort": 53 }
  ],
  "vms": [
    { "name": "web01", "ip": "192.168.100.10", "memo": "nginx" },
    { "name": "dns01", "ip": "192.168.100.11" }
  ]
}
"""

FEATURE_SUMMARY = r"""
  Resources created for network <name>:
    VMSwitch  <name>-Switch  (Internal)
    NetIPAddress  <gateway>/<prefix> on "vEthernet (<name>-Switch)"
    NetNat  <name>-NAT  (InternalIPInterfaceAddressPrefix = subnet)
    NetNatStaticMapping  one per portForwarding rule (external address 0.0.0.0)

  apply:  remove everything above that exists, then create it again
  remove: remove everything above that exists

  gateway defaults to the first host address of the subnet (.1 for a /24).
  A failed apply is rolled back by running the removal once more.

  Run from an elevated PowerShell prompt:
    hvnat network.json
    hvnat network.json --action remove --yes
    echo y | hvnat network.json           # answer the prompt from a pipe
    hvnat network.json --dry-run -vv      # query the host, print what would change
"""
