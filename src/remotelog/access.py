"""Access filter deciding which senders may write logs.

Filtering logic, evaluated in this order and stopping at the first denial:

1. If the whitelist is non-empty, the sender's node must be on it.
2. If the blacklist is non-empty, the sender's node must not be on it.
3. If the allowed-package set is non-empty, the sender's package must be in it.

Empty sets never deny.
"""

from __future__ import annotations

from remotelog.models.address import Address, PackageId


class AccessFilter:
    """Mutable allow/deny sets checked against every inbound message."""

    def __init__(self) -> None:
        self.allowed_packages: set[PackageId] = set()
        self.whitelist: set[str] = set()
        self.blacklist: set[str] = set()

    def check_node(self, source: Address) -> str | None:
        """Return a denial reason if the source node is filtered out."""
        if self.whitelist and source.node not in self.whitelist:
            return f"dropping log Request from un-whitelisted node {source.node}"
        if self.blacklist and source.node in self.blacklist:
            return f"dropping log Request from blacklisted node {source.node}"
        return None

    def check_package(self, source: Address) -> str | None:
        """Return a denial reason if the source package is not allowed."""
        if self.allowed_packages and source.package_id not in self.allowed_packages:
            allowed = sorted(str(p) for p in self.allowed_packages)
            return (
                f"dropping log Request from package {source.package_id}; "
                f"not amongst allowed packages: {allowed}"
            )
        return None

    def check(self, source: Address) -> str | None:
        return self.check_node(source) or self.check_package(source)

    def is_allowed(self, source: Address) -> bool:
        return self.check(source) is None

    # Mutations are idempotent set operations.

    def add_allowed_package(self, package_id: PackageId) -> None:
        self.allowed_packages.add(package_id)

    def remove_allowed_package(self, package_id: PackageId) -> None:
        self.allowed_packages.discard(package_id)

    def whitelist_node(self, node: str) -> None:
        self.whitelist.add(node)

    def unwhitelist_node(self, node: str) -> None:
        self.whitelist.discard(node)

    def blacklist_node(self, node: str) -> None:
        self.blacklist.add(node)

    def unblacklist_node(self, node: str) -> None:
        self.blacklist.discard(node)

    def snapshot(self) -> dict[str, list[str]]:
        """Sorted copy of all three sets, for diagnostics."""
        return {
            "allowed_packages": sorted(str(p) for p in self.allowed_packages),
            "whitelist": sorted(self.whitelist),
            "blacklist": sorted(self.blacklist),
        }
