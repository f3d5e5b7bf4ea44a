import logging

import pandas as pd

from ..schema import ROLE_RULES, ColumnRole
from ..utils import as_text, lenient_number
from .base import KPIEngineBase, KPIResult
from .calculator import unpack_source
from .definitions import SALES_KPIS, kpis_for
from .formatting import currency_fmt

log = logging.getLogger("datadash.kpis")

BUYER_TYPES = ('B2B', 'B2C')
_B2B_SPELLINGS = {'B2B', 'B-2-B', 'B 2 B'}


def buyer_bucket(value) -> str:
    # anything that is not spelled as B2B counts as B2C
    return 'B2B' if as_text(value).upper() in _B2B_SPELLINGS else 'B2C'


class SalesKPIEngine(KPIEngineBase):
    mode_name = 'sales'

    def compute(self, dataset, state=None, config=None):
        cfg = config or self.cfg
        res = KPIResult(mode='sales')
        rows, registry = unpack_source(dataset, self.calc.cfg)
        if not rows:
            res.warnings.append('No table data available')
            return res

        res.kpis = self.calc.compute_all(dataset, kpis_for(SALES_KPIS), state)
        df = pd.DataFrame(self.calc.filtered(dataset, state), columns=registry.names)

        qty_col = registry.best(ColumnRole.NUMERIC, ('quantity',), strict=True)
        price_col = registry.best(ColumnRole.NUMERIC, ROLE_RULES['price'][1], strict=True)
        type_col = registry.best(*ROLE_RULES['buyer_type'], strict=True)
        name_col = registry.best(ColumnRole.CATEGORICAL, ('name',), strict=True)
        for role, col in (('quantity', qty_col), ('price', price_col), ('buyer_type', type_col), ('buyer_name', name_col)):
            if col:
                res.used_columns[role] = col

        label = getattr(dataset, 'label', 'Sales')
        quantity = res.kpis['total_quantity']
        res.computed['quantity_label'] = label
        res.computed['has_quantity'] = quantity.has_data
        res.computed['total_quantity'] = quantity.value if quantity.has_data else None
        res.computed['quantity_display'] = quantity.display

        if df.empty:
            res.warnings.append('No rows match the current filters')
            res.summary = f'{label}: no rows in the current view.'
            return res

        if qty_col and price_col:
            res.tables['buyer_types'] = self._buyer_types(df, qty_col, price_col, type_col)
            res.charts.append({
                'id': 'sales_buyer_types',
                'chart_type': 'pie',
                'title': 'Sales by Buyer Type',
                'data': res.tables['buyer_types'],
                'x': 'buyer_type',
                'y': 'total_sales',
                'priority': 2,
            })
        else:
            res.warnings.append('buyer_type_breakdown_missing_columns')

        if qty_col and price_col and type_col and name_col:
            top = self._top_b2b(df, name_col, qty_col, price_col, type_col, cfg.max_items)
            res.tables['top_b2b_buyers'] = top
            if top:
                res.charts.append({
                    'id': 'sales_top_b2b_buyers',
                    'chart_type': 'bar',
                    'title': 'Top B2B Buyers',
                    'data': top,
                    'x': 'name',
                    'y': 'total_revenue',
                    'priority': 3,
                })
        else:
            log.warning(f"Top B2B buyers skipped for {label}: missing columns")

        parts = [f"{label}: {quantity.display} units"]
        b2b = next((b for b in res.tables.get('buyer_types', []) if b['buyer_type'] == 'B2B'), None)
        if b2b:
            parts.append(f"B2B sales {currency_fmt(b2b['total_sales'], cfg.currency)}")
        res.summary = '; '.join(parts) + '.'
        return res

    def _buyer_types(self, df, qty_col, price_col, type_col):
        qty = df[qty_col].map(lenient_number)
        price = df[price_col].map(lenient_number)
        keep = (qty > 0) & (price > 0)
        buckets = df[type_col].map(buyer_bucket) if type_col else pd.Series('B2C', index=df.index)
        frame = pd.DataFrame({'bucket': buckets[keep], 'qty': qty[keep], 'price': price[keep]})
        grouped = frame.groupby('bucket').agg(total=('price', 'sum'), quantity=('qty', 'sum'), count=('price', 'size'))

        out = []
        # both buckets are always reported
        for bt in BUYER_TYPES:
            total = float(grouped.at[bt, 'total']) if bt in grouped.index else 0.0
            quantity = float(grouped.at[bt, 'quantity']) if bt in grouped.index else 0.0
            count = int(grouped.at[bt, 'count']) if bt in grouped.index else 0
            out.append({
                'buyer_type': bt,
                'total_sales': total,
                'total_quantity': quantity,
                'count': count,
                'average_price': total / quantity if quantity > 0 else 0.0,
            })
        return out

    def _top_b2b(self, df, name_col, qty_col, price_col, type_col, limit):
        b2b = df[df[type_col].map(lambda v: as_text(v).upper() == 'B2B')]
        if b2b.empty:
            return []
        frame = pd.DataFrame({
            'name': b2b[name_col].map(lambda v: as_text(v) or 'Unknown Buyer'),
            'total_quantity': b2b[qty_col].map(lenient_number),
            'total_revenue': b2b[price_col].map(lenient_number),
        })
        grouped = frame.groupby('name', sort=False).sum().reset_index()
        grouped = grouped.sort_values('total_revenue', ascending=False, kind='stable').head(limit)
        return [
            {'name': str(n), 'total_quantity': float(q), 'total_revenue': float(r)}
            for n, q, r in grouped[['name', 'total_quantity', 'total_revenue']].itertuples(index=False, name=None)
        ]
