"""Dados dos gráficos: Pareto, cascata, margens, tendência, mapa de calor e DRE."""
from datetime import date, datetime

from caixa.models import CashBox, CashBoxExpense, CashBoxService, ServiceType
from caixa.schemas.analytics import OverallTotals, ParetoInput, PeriodPerformance, ServiceAggregate, WaterfallStep
from caixa.services.charts import (
    build_dre,
    build_heatmap,
    build_margin_chart,
    build_margin_percentage_chart,
    build_pareto,
    build_trend,
    build_waterfall,
    build_waterfall_steps,
    heatmap_color,
    pareto_inputs,
)

CARRO = ServiceType(id=1, code="CARRO", name="Carro", default_price_cents=12000, counts_in_gross=True)


def box(day, quantity, price, expenses=0, created_at=None):
    b = CashBox(store_id=1, vistoriador_id=1, date=day, note="Caixa", created_at=created_at)
    b.services = [CashBoxService(service_type_id=1, quantity=quantity, unit_price_cents=price, service_type=CARRO)]
    b.expenses = [CashBoxExpense(title="Despesa", amount_cents=expenses)] if expenses else []
    b.electronic_entries = []
    return b


def test_pareto_rows():
    rows = build_pareto(
        [
            ParetoInput(servico="Moto", receita=3000, margem=2000),
            ParetoInput(servico="Cautelar Caminhão/Caminhonete", receita=9000, margem=6000),
            ParetoInput(servico="Carro", receita=2000, margem=1000),
            ParetoInput(servico="Pesquisa", receita=1000, margem=1000),
        ]
    )
    assert [r.servico for r in rows][:2] == ["Cautelar Caminhão/Caminhonete", "Moto"]
    assert rows[0].label == "Cautelar Cam..."
    assert rows[0].acumulada_pct == 60.0
    assert rows[-1].acumulada_pct == 100.0
    assert rows[0].margem_normalized == 100.0
    assert [r.show_label for r in rows] == [True, True, True, False]


def test_pareto_inputs_allocate_variable_expenses():
    services = [
        ServiceAggregate(id=1, name="Carro", value_cents=7500),
        ServiceAggregate(id=2, name="Moto", value_cents=2500),
    ]
    inputs = pareto_inputs(services, variable_expenses_cents=1000)
    assert inputs[0].margem == 7500 - 750
    assert inputs[1].margem == 2500 - 250


def test_waterfall_running_totals():
    totals = OverallTotals(gross=100000, expenses_variable=20000, fixed_expenses=50000, net_after_fixed=30000)
    chart = build_waterfall("Centro", build_waterfall_steps(totals))
    names = [b.name for b in chart.bars]
    assert names == ["Faturamento", "Despesas variáveis", "Despesas fixas", "Resultado"]
    assert chart.bars[0].end == 1000.0
    assert chart.bars[0].is_faturamento
    assert chart.bars[1].end == 800.0
    assert chart.bars[2].end == 300.0
    assert chart.bars[1].label.startswith("-R$")
    assert chart.title == "Cascata de Receitas e Custos - Centro"


def test_waterfall_revenue_step_resets_total():
    chart = build_waterfall(
        "X",
        [
            WaterfallStep(nome="Ajuste", valor=500),
            WaterfallStep(nome="Receita", valor=10000),
            WaterfallStep(nome="Bônus", valor=200),
        ],
    )
    assert chart.bars[1].end == 100.0
    assert chart.bars[2].end == 102.0
    assert chart.bars[2].label == "+R$ 2,00"
    assert chart.bars[1].label == "R$ 100,00"


def test_margin_charts():
    boxes = [
        box(date(2025, 3, 1), 1, 10000, expenses=2000),
        box(date(2025, 3, 1), 1, 10000),
        box(date(2025, 3, 2), 1, 5000, expenses=6000),
    ]
    bars = build_margin_chart(boxes)
    assert [p.margin_cents for p in bars.points] == [18000, -1000]
    assert bars.average_cents == 8500
    assert bars.points[0].label == "01/03"
    assert bars.points[1].fill == "#ef4444"

    pct = build_margin_percentage_chart(boxes, target=15)
    assert pct.points[0].margin_percentage == 90.0
    assert pct.points[1].margin_percentage == -20.0
    assert pct.average == 35.0
    assert pct.target == 15


def test_trend_sorted_ascending():
    trend = build_trend(
        [
            PeriodPerformance(month_key="2025-04", label="abril de 2025", service_cents=20000, net_cents=5000),
            PeriodPerformance(month_key="2025-03", label="março de 2025", service_cents=10000, net_cents=1000),
        ]
    )
    assert [t.month_key for t in trend] == ["2025-03", "2025-04"]
    assert trend[0].receita == 100.0


def test_heatmap():
    # 2025-03-10 13:00 UTC é segunda-feira, 10h em São Paulo
    boxes = [
        box(date(2025, 3, 10), 4, 100, created_at=datetime(2025, 3, 10, 13, 0)),
        box(date(2025, 3, 10), 2, 100, created_at=datetime(2025, 3, 10, 13, 30)),
    ]
    chart = build_heatmap(boxes)
    assert chart.hours[0] == 8 and chart.hours[-1] == 20
    assert [r.day for r in chart.rows][:2] == ["Dom", "Seg"]
    monday = chart.rows[1]
    cell = next(c for c in monday.cells if c.hora == 10)
    assert cell.vistorias == 6
    assert cell.color == "#1e40af"
    assert chart.max_value == 6


def test_heatmap_color_buckets():
    assert heatmap_color(0, 0) == "#e2e8f0"
    assert heatmap_color(0, 10) == "#f1f5f9"
    assert heatmap_color(1, 10) == "#dbeafe"
    assert heatmap_color(4, 10) == "#93c5fd"
    assert heatmap_color(6, 10) == "#3b82f6"


def test_dre_healthy():
    dre = build_dre(100000, 20000, 30000)
    assert dre.net_result_cents == 50000
    assert dre.contribution_margin_cents == 80000
    assert dre.contribution_margin_pct == 80.0
    assert dre.net_margin_pct == 50.0
    assert dre.status == "saudavel"
    assert dre.break_even_cents == 30000


def test_dre_attention():
    assert build_dre(100000, 50000, 45000).status == "atencao"


def test_dre_critical_insights():
    dre = build_dre(100000, 10000, 150000)
    assert dre.status == "critico"
    severities = [i.severity for i in dre.insights]
    assert severities == ["critical", "info", "suggestion"]
    assert "R$ 600,00" in dre.insights[2].text


def test_dre_without_revenue():
    dre = build_dre(0, 0, 0)
    assert dre.net_margin_pct == 0.0
    assert dre.status == "atencao"
    assert dre.insights == []
