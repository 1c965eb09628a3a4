"""Merging raw probe results into a Snapshot."""

from typing import List, Optional, Sequence

from .models import ServiceEntry, Snapshot
from .utils import dedupe, is_generic_interface_name


def display_names_for_interfaces(interfaces: Sequence[str], available_configs: Sequence[str]) -> List[str]:
    """
    Human-facing names for active tunnel interfaces.

    Named interfaces are shown as they are. When only generic utunN
    interfaces are up and exactly one config exists, that config is assumed
    to be the active tunnel. Otherwise the raw interface names are shown.
    """
    if not interfaces:
        return []

    named = [name for name in interfaces if not is_generic_interface_name(name)]
    if named:
        return named

    if len(available_configs) == 1:
        return [available_configs[0]]

    return list(interfaces)


def build_snapshot(
        interfaces: Sequence[str],
        services: Sequence[ServiceEntry],
        config_names: Sequence[str],
) -> Snapshot:
    """Build a Snapshot from one round of probe results."""
    connected_services = [service.name for service in services if service.is_connected]
    available_services = [service.name for service in services]
    interface_names = dedupe(interfaces)
    configs = dedupe(config_names)

    tunnel_display_names = display_names_for_interfaces(interface_names, configs)

    return Snapshot(
        connected_display_names=tuple(dedupe(connected_services + tunnel_display_names)),
        connected_tunnel_interfaces=tuple(interface_names),
        connected_service_names=tuple(dedupe(connected_services)),
        available_service_names=tuple(dedupe(available_services)),
        available_config_names=tuple(configs),
    )


def prioritized(items: Sequence[str], preferred: Optional[str]) -> List[str]:
    """Move entries matching preferred (case-insensitively) to the front."""
    if not preferred:
        return list(items)

    key = preferred.lower()
    first = [item for item in items if item.lower() == key]
    rest = [item for item in items if item.lower() != key]
    return first + rest


def inferred_config_name(snapshot: Snapshot) -> Optional[str]:
    """Config name most likely behind the active tunnel, if one can be told."""
    configs = snapshot.available_config_names
    if len(configs) == 1:
        return configs[0]

    config_keys = {name.lower() for name in configs}
    for display_name in snapshot.connected_display_names:
        if is_generic_interface_name(display_name):
            continue
        if display_name.lower() in config_keys:
            return display_name

    return None


def disconnect_candidates(snapshot: Snapshot) -> List[str]:
    """
    Tunnel names to try `wg-quick down` on, most likely first.

    Named active interfaces, then the inferred config, then every known
    config as a last resort.
    """
    candidates = [
        name for name in snapshot.connected_tunnel_interfaces
        if not is_generic_interface_name(name)
    ]

    inferred = inferred_config_name(snapshot)
    if inferred:
        candidates.append(inferred)

    candidates.extend(snapshot.available_config_names)
    return dedupe(candidates)
