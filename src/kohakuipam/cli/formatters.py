"""Rich table builders for pools, leases and stats."""

from rich.table import Table


def format_pool_table(pools: list[dict]) -> Table:
    table = Table(title="Pools", show_header=True)
    table.add_column("Pool ID", style="cyan")
    table.add_column("Subnet", style="green")
    table.add_column("Gateway")
    for pool in pools:
        table.add_row(pool["pool_id"], pool["subnet"], pool.get("gateway") or "-")
    return table


def format_lease_table(leases: list[dict]) -> Table:
    table = Table(title="Leases", show_header=True)
    table.add_column("Address", style="cyan")
    table.add_column("Holder", style="green")
    table.add_column("Granted At")
    for lease in leases:
        table.add_row(lease["address"], lease["holder"], lease["granted_at"])
    return table


def format_stats_table(stats: dict) -> Table:
    table = Table(
        title=f"Usage ({stats['total_pools']} pools, {stats['total_leases']} leases)",
        show_header=True,
    )
    table.add_column("Pool ID", style="cyan")
    table.add_column("Subnet", style="green")
    table.add_column("Leased", justify="right")
    table.add_column("Capacity", justify="right")
    for pool in stats["pools"]:
        table.add_row(
            pool["pool_id"], pool["subnet"], str(pool["leased"]), str(pool["capacity"])
        )
    return table
