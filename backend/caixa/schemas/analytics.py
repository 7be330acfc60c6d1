from typing import List, Optional

from pydantic import BaseModel


class MonthlySummary(BaseModel):
    """Resumo de um mês: faturamento, entradas eletrônicas e despesas (centavos)."""

    month_key: str  # YYYY-MM
    month_label: str
    gross: int
    pix: int
    cartao: int
    expenses_variable: int
    net: int
    fixed_expenses: int
    net_after_fixed: int


class OverallTotals(BaseModel):
    gross: int = 0
    pix: int = 0
    cartao: int = 0
    expenses_variable: int = 0
    net: int = 0
    fixed_expenses: int = 0
    net_after_fixed: int = 0


class MonthlySummaryResponse(BaseModel):
    items: List[MonthlySummary]
    totals: OverallTotals


class ServiceAggregate(BaseModel):
    id: int
    name: str
    code: Optional[str] = None
    quantity: int = 0
    value_cents: int = 0
    avg_value_cents: int = 0


class StoreAggregate(BaseModel):
    store_id: int
    name: str
    value_cents: int = 0
    quantity: int = 0


class ExpenseAggregate(BaseModel):
    """Despesas agrupadas pelo título."""

    id: str
    name: str
    total_cents: int = 0
    occurrences: int = 0
    store_name: str
    month_label: str


class PeriodPerformance(BaseModel):
    month_key: str
    label: str
    service_cents: int = 0
    variable_cents: int = 0
    fixed_cents: int = 0
    net_cents: int = 0
    service_quantity: int = 0


class AdminMetrics(BaseModel):
    total_quantity: int = 0
    total_value_cents: int = 0
    avg_ticket_cents: int = 0
    services: List[ServiceAggregate] = []
    top_by_quantity: Optional[ServiceAggregate] = None
    top_by_value: Optional[ServiceAggregate] = None
    store_ranking: List[StoreAggregate] = []
    variable_expenses_total_cents: int = 0
    fixed_expenses_total_cents: int = 0
    net_result_cents: int = 0
    variable_expenses_top: List[ExpenseAggregate] = []
    fixed_expenses_top: List[ExpenseAggregate] = []
    monthly_performance: List[PeriodPerformance] = []
    best_period: Optional[PeriodPerformance] = None
    worst_period: Optional[PeriodPerformance] = None
    top_periods: List[PeriodPerformance] = []
    bottom_periods: List[PeriodPerformance] = []


class ParetoInput(BaseModel):
    servico: str
    receita: int
    margem: int


class ParetoRow(BaseModel):
    servico: str
    receita: int
    margem: int
    acumulada_pct: float
    label: str
    show_label: bool
    margem_reais: float
    margem_normalized: float


class WaterfallStep(BaseModel):
    nome: str
    valor: int


class WaterfallBar(BaseModel):
    name: str
    start: float
    end: float
    value: float
    bar_value: float
    connector: float
    fill: str
    is_positive: bool
    is_resultado: bool
    is_faturamento: bool
    label: str


class WaterfallChart(BaseModel):
    loja: str
    title: str
    bars: List[WaterfallBar]


class MarginPoint(BaseModel):
    date: str
    label: str
    margin_cents: int
    margin_reais: float
    fill: str


class MarginChart(BaseModel):
    average_cents: float
    average_label: str
    points: List[MarginPoint]


class MarginPercentagePoint(BaseModel):
    date: str
    label: str
    margin_percentage: float
    revenue_cents: int


class MarginPercentageChart(BaseModel):
    average: float
    target: float
    points: List[MarginPercentagePoint]


class MarginCharts(BaseModel):
    bars: MarginChart
    percentage: MarginPercentageChart


class TrendPoint(BaseModel):
    label: str
    month_key: str
    receita: float
    variavel: float
    fixa: float
    liquido: float


class HeatmapCell(BaseModel):
    hora: int
    vistorias: int
    color: str


class HeatmapRow(BaseModel):
    day: str
    cells: List[HeatmapCell]


class HeatmapChart(BaseModel):
    max_value: int
    hours: List[int]
    rows: List[HeatmapRow]


class DreInsight(BaseModel):
    text: str
    severity: str  # critical | info | suggestion


class DreReport(BaseModel):
    total_revenue_cents: int
    variable_expenses_cents: int
    fixed_expenses_cents: int
    net_result_cents: int
    contribution_margin_cents: int
    contribution_margin_pct: float
    net_margin_pct: float
    break_even_cents: int
    current_vs_break_even_pct: float
    fixed_vs_revenue_pct: float
    status: str  # saudavel | atencao | critico
    insights: List[DreInsight]
