from .base import STATUS_NO_DATA, KPIEngineBase, KPIResult
from .calculator import unpack_source
from .definitions import CLAIM_KPIS, kpis_for

BAND_EXCELLENT = 'excellent'
BAND_GOOD = 'good'
BAND_NEEDS_IMPROVEMENT = 'needs_improvement'


def recovery_band(percentage: float) -> str:
    if percentage >= 75:
        return BAND_EXCELLENT
    if percentage >= 50:
        return BAND_GOOD
    return BAND_NEEDS_IMPROVEMENT


class ClaimsKPIEngine(KPIEngineBase):
    """MDA claim recovery: how much of the eligible amount has been received."""
    mode_name = 'claims'

    def compute(self, dataset, state=None, config=None):
        res = KPIResult(mode='claims')
        rows, _ = unpack_source(dataset, self.calc.cfg)
        if not rows:
            res.warnings.append('No table data available')
            return res

        res.kpis = self.calc.compute_all(dataset, kpis_for(CLAIM_KPIS), state)
        recovery = res.kpis['mda_recovery_percentage']
        for alias, col in recovery.used_columns:
            res.used_columns[alias] = col
        for note in recovery.ambiguous:
            res.warnings.append(f'ambiguous_column: {note}')

        if not recovery.has_data:
            res.warnings.append(recovery.reason)
            if recovery.status == STATUS_NO_DATA:
                res.summary = 'MDA claim columns (eligible, received) not found.'
            else:
                res.summary = 'No MDA claims in the current view.'
            return res

        for name, kpi in res.kpis.items():
            res.computed[name] = kpi.value
        pct = recovery.value
        res.computed['status'] = recovery_band(pct)
        res.tables['claim_summary'] = [
            {'metric': kpi.label, 'value': kpi.value, 'display': kpi.display}
            for kpi in res.kpis.values()
        ]
        res.charts.append({
            'id': 'claims_recovery',
            'chart_type': 'bar',
            'title': 'MDA Eligible vs Received',
            'data': [
                {'metric': 'Eligible', 'amount': res.computed['mda_total_eligible']},
                {'metric': 'Received', 'amount': res.computed['mda_total_received']},
            ],
            'x': 'metric',
            'y': 'amount',
            'priority': 1,
        })
        res.summary = (f"Recovered {recovery.display} of eligible MDA claims "
                       f"({res.kpis['mda_total_received'].display} of {res.kpis['mda_total_eligible'].display}); "
                       f"balance {res.kpis['mda_balance'].display}.")
        return res
