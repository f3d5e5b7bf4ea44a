"""
KPI definitions: the columns each KPI needs (as keyword lookups) and how it
reduces the filtered rows.
"""
from typing import Dict, List

from ..schema import ROLE_RULES, ColumnRole
from .base import KPISpec
from .calculator import (
    count_rows,
    difference_of,
    distinct_of,
    mean_of,
    on_claim_rows,
    ratio_percent,
    sum_of,
)

QUANTITY = (ColumnRole.NUMERIC, ROLE_RULES["quantity"][1])
PRICE = (ColumnRole.NUMERIC, ROLE_RULES["price"][1])
REVENUE = (ColumnRole.NUMERIC, ROLE_RULES["revenue"][1])
ELIGIBLE = (ColumnRole.NUMERIC, ROLE_RULES["eligible"][1])
RECEIVED = (ColumnRole.NUMERIC, ROLE_RULES["received"][1])
BUYER_NAME = (ColumnRole.CATEGORICAL, ROLE_RULES["buyer_name"][1])

_CLAIM_COLUMNS = {"eligible": ELIGIBLE, "received": RECEIVED}

KPI_DEFINITIONS: Dict[str, KPISpec] = {
    "row_count": KPISpec(
        name="row_count",
        label="Records",
        required={},
        reducer=count_rows(),
        description="Rows remaining after filters.",
    ),
    "total_quantity": KPISpec(
        name="total_quantity",
        label="Total Quantity",
        required={"quantity": QUANTITY},
        reducer=sum_of("quantity"),
        description="sum(Quantity)",
    ),
    "total_revenue": KPISpec(
        name="total_revenue",
        label="Total Revenue",
        required={"revenue": REVENUE},
        reducer=sum_of("revenue"),
        format_hint="currency",
        description="sum(Revenue)",
    ),
    "average_price": KPISpec(
        name="average_price",
        label="Average Price",
        required={"price": PRICE},
        reducer=mean_of("price"),
        format_hint="currency",
        description="mean(Price) per row",
    ),
    "unique_buyers": KPISpec(
        name="unique_buyers",
        label="Unique Buyers",
        required={"buyer": BUYER_NAME},
        reducer=distinct_of("buyer"),
    ),
    "mda_total_eligible": KPISpec(
        name="mda_total_eligible",
        label="MDA Eligible Amount",
        required=_CLAIM_COLUMNS,
        reducer=on_claim_rows(sum_of("eligible")),
        format_hint="currency",
    ),
    "mda_total_received": KPISpec(
        name="mda_total_received",
        label="MDA Amount Received",
        required=_CLAIM_COLUMNS,
        reducer=on_claim_rows(sum_of("received")),
        format_hint="currency",
    ),
    "mda_balance": KPISpec(
        name="mda_balance",
        label="MDA Balance",
        required=_CLAIM_COLUMNS,
        reducer=on_claim_rows(difference_of("eligible", "received")),
        format_hint="currency",
        description="eligible - received",
    ),
    "mda_recovery_percentage": KPISpec(
        name="mda_recovery_percentage",
        label="MDA Claim Recovery Rate",
        required=_CLAIM_COLUMNS,
        reducer=on_claim_rows(ratio_percent("received", "eligible")),
        format_hint="percent",
        description="100 * received / eligible, 0 when nothing is eligible",
    ),
}

CLAIM_KPIS = ["mda_recovery_percentage", "mda_total_eligible", "mda_total_received", "mda_balance"]
SALES_KPIS = ["row_count", "total_quantity", "total_revenue", "average_price", "unique_buyers"]


def get_kpi(name: str) -> KPISpec:
    return KPI_DEFINITIONS[name]


def kpis_for(names: List[str]) -> List[KPISpec]:
    return [KPI_DEFINITIONS[n] for n in names]
