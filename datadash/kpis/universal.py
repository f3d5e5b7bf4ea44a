from ..aggregate import aggregate_by_category, aggregate_by_column, date_span, grand_total, unique_values
from ..schema import ROLE_RULES, ColumnRole
from .base import KPIEngineBase, KPIResult
from .calculator import unpack_source
from .definitions import kpis_for
from .formatting import number_fmt


class UniversalKPIEngine(KPIEngineBase):
    mode_name = 'universal'

    def compute(self, dataset, state=None, config=None):
        cfg = config or self.cfg
        res = KPIResult(mode='universal')
        rows, registry = unpack_source(dataset, self.calc.cfg)
        if not rows:
            res.warnings.append('No table data available')
            return res

        res.kpis = self.calc.compute_all(dataset, kpis_for(['row_count']), state)
        filtered = self.calc.filtered(dataset, state)

        res.computed['rows'] = len(filtered)
        res.computed['rows_total'] = len(rows)
        res.computed['cols'] = len(registry)
        res.computed['numeric_columns'] = len(registry.columns(ColumnRole.NUMERIC))
        res.computed['categorical_columns'] = len(registry.columns(ColumnRole.CATEGORICAL))
        res.computed['date_columns'] = len(registry.columns(ColumnRole.DATE))

        value_col = registry.best(ColumnRole.NUMERIC, ROLE_RULES['value'][1])
        if value_col:
            total = grand_total(filtered, value_col)
            res.used_columns['value'] = value_col
            res.computed['value_total'] = total
            res.computed['value_average'] = total / len(filtered) if filtered else 0.0

        cat_col = next(iter(registry.chartable(ColumnRole.CATEGORICAL)), None)
        if cat_col:
            res.used_columns['category'] = cat_col
            res.computed['distinct_categories'] = len(unique_values(filtered, cat_col))
            if value_col:
                groups = aggregate_by_category(filtered, cat_col, value_col)
            else:
                groups = aggregate_by_column(filtered, cat_col)
            res.tables['top_categories'] = [g.to_dict() for g in groups[:cfg.max_items]]
            if groups:
                res.charts.append({
                    'id': f'universal_bar_{cat_col}',
                    'chart_type': 'bar',
                    'title': f'{value_col or "Count"} by {cat_col}',
                    'data': res.tables['top_categories'],
                    'x': 'group_key',
                    'y': 'total',
                    'priority': 2,
                })

        date_col = registry.date_column
        if date_col:
            res.used_columns['date'] = date_col
            first, last = date_span(filtered, date_col, self.calc.cfg)
            res.computed['date_start'] = first
            res.computed['date_end'] = last
            if first:
                res.charts.append({
                    'id': f'universal_trend_{date_col}',
                    'chart_type': 'line',
                    'title': f'{value_col or "Records"} over time',
                    'x': date_col,
                    'y': value_col,
                    'priority': 1,
                })

        res.summary = (f"Dataset: {number_fmt(res.computed['rows'])} of {number_fmt(len(rows))} rows × "
                       f"{res.computed['cols']} cols. {res.computed['numeric_columns']} numeric columns.")
        return res
