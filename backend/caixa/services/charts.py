"""
Dados prontos para os gráficos do painel.

Só transformações de dados (percentuais, acumulados, totais corridos e cores);
a renderização fica no front.
"""
import datetime as dt
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from caixa.config import settings
from caixa.core.dates import to_local
from caixa.core.money import format_currency, round_half_up
from caixa.models import CashBox
from caixa.schemas.analytics import (
    DreInsight,
    DreReport,
    HeatmapCell,
    HeatmapChart,
    HeatmapRow,
    MarginChart,
    MarginPercentageChart,
    MarginPercentagePoint,
    MarginPoint,
    OverallTotals,
    ParetoInput,
    ParetoRow,
    PeriodPerformance,
    ServiceAggregate,
    TrendPoint,
    WaterfallBar,
    WaterfallChart,
    WaterfallStep,
)

COLOR_REVENUE = "#3b82f6"
COLOR_COST = "#ef4444"
COLOR_POSITIVE = "#10b981"
COLOR_NEGATIVE = "#dc2626"
COLOR_WARNING = "#f59e0b"

PARETO_LABEL_MAX = 12
DAYS_OF_WEEK = ("Dom", "Seg", "Ter", "Qua", "Qui", "Sex", "Sáb")
HEATMAP_HOURS = tuple(range(8, 21))


def pareto_inputs(
    services: Iterable[ServiceAggregate],
    variable_expenses_cents: int = 0,
) -> List[ParetoInput]:
    """Margem por serviço: receita menos a parte das despesas variáveis proporcional à receita."""
    services = list(services)
    total = sum(s.value_cents for s in services)
    rows = []
    for s in services:
        share = s.value_cents / total if total else 0
        rows.append(
            ParetoInput(
                servico=s.name,
                receita=s.value_cents,
                margem=s.value_cents - round_half_up(variable_expenses_cents * share),
            )
        )
    return rows


def build_pareto(items: Iterable[ParetoInput]) -> List[ParetoRow]:
    ordered = sorted(items, key=lambda i: i.margem, reverse=True)
    total_margin = sum(i.margem for i in ordered)
    max_margin = max([i.margem for i in ordered] + [1])
    rows = []
    running = 0
    for idx, item in enumerate(ordered):
        running += item.margem
        label = item.servico
        if len(label) > PARETO_LABEL_MAX:
            label = f"{label[:PARETO_LABEL_MAX]}..."
        rows.append(
            ParetoRow(
                servico=item.servico,
                receita=item.receita,
                margem=item.margem,
                acumulada_pct=round(running / total_margin * 100, 2) if total_margin > 0 else 0.0,
                label=label,
                show_label=idx < 3,
                margem_reais=item.margem / 100,
                margem_normalized=item.margem / max_margin * 100,
            )
        )
    return rows


def build_waterfall_steps(totals: OverallTotals) -> List[WaterfallStep]:
    """Faturamento -> despesas variáveis -> despesas fixas -> resultado."""
    return [
        WaterfallStep(nome="Faturamento", valor=totals.gross),
        WaterfallStep(nome="Despesas variáveis", valor=-totals.expenses_variable),
        WaterfallStep(nome="Despesas fixas", valor=-totals.fixed_expenses),
        WaterfallStep(nome="Resultado", valor=totals.net_after_fixed),
    ]


def build_waterfall(loja: str, steps: Iterable[WaterfallStep], title: Optional[str] = None) -> WaterfallChart:
    """
    Cascata com total corrido. Etapa de faturamento/receita zera o acumulado
    no próprio valor; as demais somam ao acumulado.
    """
    bars = []
    running = 0
    for step in steps:
        name = step.nome.lower()
        is_positive = step.valor >= 0
        is_resultado = "resultado" in name
        is_faturamento = "faturamento" in name or "receita" in name

        start = running
        if is_faturamento:
            end = step.valor
        else:
            end = start + step.valor
        running = end

        if is_resultado:
            fill = COLOR_POSITIVE if is_positive else COLOR_NEGATIVE
        elif is_faturamento:
            fill = COLOR_REVENUE
        else:
            fill = COLOR_COST

        prefix = "+" if is_positive and not is_faturamento else ""
        bars.append(
            WaterfallBar(
                name=step.nome,
                start=(start if is_positive else end) / 100,
                end=end / 100,
                value=step.valor / 100,
                bar_value=step.valor / 100,
                connector=end / 100,
                fill=fill,
                is_positive=is_positive,
                is_resultado=is_resultado,
                is_faturamento=is_faturamento,
                label=f"{prefix}{format_currency(step.valor)}",
            )
        )
    return WaterfallChart(
        loja=loja,
        title=title or f"Cascata de Receitas e Custos - {loja}",
        bars=bars,
    )


def _daily_figures(cash_boxes: Iterable[CashBox]) -> Dict[dt.date, Dict[str, int]]:
    days: Dict[dt.date, Dict[str, int]] = defaultdict(lambda: {"gross": 0, "expenses": 0})
    for box in cash_boxes:
        day = days[box.date]
        for service in box.services or []:
            service_type = service.service_type
            if service_type is None or service_type.counts_in_gross:
                day["gross"] += service.total_cents
        day["expenses"] += sum(x.amount_cents for x in box.expenses or [])
    return days


def build_margin_chart(cash_boxes: Iterable[CashBox]) -> MarginChart:
    """Margem (bruto - despesas) por dia; cor pela média do período."""
    days = _daily_figures(cash_boxes)
    margins = [(d, v["gross"] - v["expenses"]) for d, v in sorted(days.items())]
    if not margins:
        return MarginChart(average_cents=0, average_label=format_currency(0), points=[])
    average = sum(m for _, m in margins) / len(margins)
    points = []
    for day, margin in margins:
        if margin >= average:
            fill = COLOR_POSITIVE
        elif margin >= 0:
            fill = COLOR_WARNING
        else:
            fill = COLOR_COST
        points.append(
            MarginPoint(
                date=day.isoformat(),
                label=day.strftime("%d/%m"),
                margin_cents=margin,
                margin_reais=margin / 100,
                fill=fill,
            )
        )
    return MarginChart(average_cents=average, average_label=format_currency(round_half_up(average)), points=points)


def build_margin_percentage_chart(
    cash_boxes: Iterable[CashBox],
    target: Optional[float] = None,
) -> MarginPercentageChart:
    days = _daily_figures(cash_boxes)
    points = []
    for day, values in sorted(days.items()):
        gross = values["gross"]
        pct = (gross - values["expenses"]) / gross * 100 if gross > 0 else 0.0
        points.append(
            MarginPercentagePoint(
                date=day.isoformat(),
                label=day.strftime("%d/%m"),
                margin_percentage=round(pct, 2),
                revenue_cents=gross,
            )
        )
    average = sum(p.margin_percentage for p in points) / len(points) if points else 0.0
    return MarginPercentageChart(
        average=round(average, 1),
        target=settings.target_margin_pct if target is None else target,
        points=points,
    )


def build_trend(performance: Iterable[PeriodPerformance]) -> List[TrendPoint]:
    """Desempenho mensal em reais, do mês mais antigo para o mais recente."""
    return [
        TrendPoint(
            label=p.label,
            month_key=p.month_key,
            receita=p.service_cents / 100,
            variavel=p.variable_cents / 100,
            fixa=p.fixed_cents / 100,
            liquido=p.net_cents / 100,
        )
        for p in sorted(performance, key=lambda p: p.month_key)
    ]


def heatmap_color(value: int, max_value: int) -> str:
    if max_value == 0:
        return "#e2e8f0"
    ratio = value / max_value
    if ratio == 0:
        return "#f1f5f9"
    if ratio < 0.25:
        return "#dbeafe"
    if ratio < 0.5:
        return "#93c5fd"
    if ratio < 0.75:
        return "#3b82f6"
    return "#1e40af"


def build_heatmap(cash_boxes: Iterable[CashBox]) -> HeatmapChart:
    """
    Vistorias por dia da semana (0 = domingo) e hora (8h-20h), pelo horário
    local em que o caixa foi lançado.
    """
    counts: Dict[tuple, int] = defaultdict(int)
    for box in cash_boxes:
        if box.created_at is None:
            continue
        local = to_local(box.created_at)
        dow = (local.weekday() + 1) % 7
        counts[(dow, local.hour)] += sum(s.quantity or 0 for s in box.services or [])

    max_value = max([v for (_, hour), v in counts.items() if hour in HEATMAP_HOURS] + [1])
    rows = []
    for dow, day in enumerate(DAYS_OF_WEEK):
        cells = [
            HeatmapCell(
                hora=hour,
                vistorias=counts.get((dow, hour), 0),
                color=heatmap_color(counts.get((dow, hour), 0), max_value),
            )
            for hour in HEATMAP_HOURS
        ]
        rows.append(HeatmapRow(day=day, cells=cells))
    return HeatmapChart(max_value=max_value, hours=list(HEATMAP_HOURS), rows=rows)


def build_dre(
    total_revenue_cents: int,
    variable_expenses_cents: int,
    fixed_expenses_cents: int,
    net_result_cents: Optional[int] = None,
) -> DreReport:
    """Demonstrativo de resultado simplificado com status e recomendações."""
    if net_result_cents is None:
        net_result_cents = total_revenue_cents - variable_expenses_cents - fixed_expenses_cents
    revenue = total_revenue_cents
    contribution = revenue - variable_expenses_cents
    contribution_pct = contribution / revenue * 100 if revenue > 0 else 0.0
    net_margin_pct = net_result_cents / revenue * 100 if revenue > 0 else 0.0
    break_even = fixed_expenses_cents
    vs_break_even = (revenue - break_even) / break_even * 100 if break_even > 0 else 0.0
    fixed_vs_revenue = fixed_expenses_cents / revenue * 100 if revenue > 0 else 0.0

    target = settings.target_margin_pct
    if net_margin_pct < 0:
        status = "critico"
    elif net_margin_pct < target:
        status = "atencao"
    else:
        status = "saudavel"

    insights = []
    if fixed_vs_revenue > 100:
        insights.append(
            DreInsight(
                text=f"Custos fixos representam {fixed_vs_revenue:.0f}% da receita",
                severity="critical",
            )
        )
    if break_even > 0:
        insights.append(
            DreInsight(
                text=f"Ponto de equilíbrio: {format_currency(break_even)} de faturamento necessário",
                severity="info",
            )
        )
    if status == "critico" and fixed_vs_revenue > 80:
        # fixas máximas para resultado zero = receita - variáveis
        reduction = fixed_expenses_cents - contribution
        if reduction > 0:
            insights.append(
                DreInsight(
                    text=f"Reduzir custos fixos em {format_currency(reduction)} tornaria resultado positivo",
                    severity="suggestion",
                )
            )

    return DreReport(
        total_revenue_cents=revenue,
        variable_expenses_cents=variable_expenses_cents,
        fixed_expenses_cents=fixed_expenses_cents,
        net_result_cents=net_result_cents,
        contribution_margin_cents=contribution,
        contribution_margin_pct=round(contribution_pct, 1),
        net_margin_pct=round(net_margin_pct, 1),
        break_even_cents=break_even,
        current_vs_break_even_pct=round(vs_break_even, 1),
        fixed_vs_revenue_pct=round(fixed_vs_revenue, 1),
        status=status,
        insights=insights,
    )

