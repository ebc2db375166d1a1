"""Data models for etcd responses and route definitions."""

from etcdroutes.models._base import EtcdRoutesBaseModel
from etcdroutes.models.node import (
    EtcdAction,
    EtcdDirectory,
    EtcdLeaf,
    EtcdNode,
    EtcdResponse,
    parse_node,
)
from etcdroutes.models.route import Filter, Predicate, Regexp, Route, RouteArg

__all__ = [
    "EtcdAction",
    "EtcdDirectory",
    "EtcdLeaf",
    "EtcdNode",
    "EtcdResponse",
    "EtcdRoutesBaseModel",
    "Filter",
    "Predicate",
    "Regexp",
    "Route",
    "RouteArg",
    "parse_node",
]
