# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# hvnat/hyperv/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class SwitchInfo:
    name: str
    switch_type: str = "Internal"


@dataclass(frozen=True)
class IpAddressInfo:
    ip_address: str
    prefix_length: int
    interface_alias: str


@dataclass(frozen=True)
class NatInfo:
    name: str
    internal_prefix: str


@dataclass(frozen=True)
class StaticMappingInfo:
    mapping_id: int
    nat_name: str
    protocol: str
    external_ip: str
    external_port: int
    internal_ip: str
    internal_port: int

    def describe(self) -> str:
        return f"{self.protocol} {self.external_ip}:{self.external_port} -> {self.internal_ip}:{self.internal_port}"


class NetworkHost(ABC):
    """
    The host's virtual networking subsystem.

    Every method is a single blocking call. Queries return an empty result
    (None or []) when nothing matches; mutations raise HostOperationError.
    """

    # switches

    @abstractmethod
    def get_switch(self, name: str) -> Optional[SwitchInfo]:
        ...

    @abstractmethod
    def new_switch(self, name: str) -> SwitchInfo:
        ...

    @abstractmethod
    def remove_switch(self, name: str) -> None:
        ...

    # IP addresses on the host adapter

    @abstractmethod
    def get_ip_addresses(self, interface_alias: str) -> List[IpAddressInfo]:
        ...

    @abstractmethod
    def new_ip_address(self, interface_alias: str, ip_address: str, prefix_length: int) -> IpAddressInfo:
        ...

    @abstractmethod
    def remove_ip_address(self, interface_alias: str, ip_address: str) -> None:
        ...

    # NAT objects

    @abstractmethod
    def get_nat(self, name: str) -> Optional[NatInfo]:
        ...

    @abstractmethod
    def new_nat(self, name: str, internal_prefix: str) -> NatInfo:
        ...

    @abstractmethod
    def remove_nat(self, name: str) -> None:
        ...

    # static port mappings

    @abstractmethod
    def get_static_mappings(self, nat_name: str) -> List[StaticMappingInfo]:
        ...

    @abstractmethod
    def add_static_mapping(
        self,
        nat_name: str,
        *,
        protocol: str,
        external_ip: str,
        external_port: int,
        internal_ip: str,
        internal_port: int,
    ) -> StaticMappingInfo:
        ...

    @abstractmethod
    def remove_static_mapping(self, nat_name: str, mapping_id: int) -> None:
        ...
