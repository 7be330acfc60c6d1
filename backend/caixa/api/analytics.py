from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from caixa.api.auth import RequireAdmin, UserInfo
from caixa.core.database import get_db
from caixa.core.dates import format_date, month_end, month_start
from caixa.core.money import cents_to_reais
from caixa.models import CashBox, CashBoxExpense, MonthlyExpense, ServiceType, Store
from caixa.schemas.analytics import (
    AdminMetrics,
    DreReport,
    HeatmapChart,
    MarginCharts,
    MonthlySummaryResponse,
    ParetoRow,
    TrendPoint,
    WaterfallChart,
)
from caixa.services.admin_service import (
    fetch_cash_boxes_by_range,
    fetch_fixed_expenses,
    fetch_stores,
    fetch_variable_expenses,
)
from caixa.services.cash_box_service import fetch_service_types
from caixa.services.charts import (
    build_dre,
    build_heatmap,
    build_margin_chart,
    build_margin_percentage_chart,
    build_pareto,
    build_trend,
    build_waterfall,
    build_waterfall_steps,
    pareto_inputs,
)
from caixa.services.metrics import compute_admin_metrics
from caixa.services.summary import overall_totals, summarize_cash_boxes

router = APIRouter(prefix="/analytics", tags=["analytics"])

ALL_STORES = "Todas as lojas"


@dataclass
class PeriodData:
    start: date
    end: date
    cash_boxes: List[CashBox]
    fixed_expenses: List[MonthlyExpense]
    variable_expenses: List[CashBoxExpense]
    service_types: List[ServiceType]
    stores: List[Store]
    store_id: Optional[int] = None

    @property
    def store_name(self) -> str:
        if not self.store_id:
            return ALL_STORES
        for store in self.stores:
            if store.id == self.store_id:
                return store.name
        return ALL_STORES

    def metrics(self) -> AdminMetrics:
        return compute_admin_metrics(
            self.cash_boxes,
            self.fixed_expenses,
            self.variable_expenses,
            self.service_types,
            self.stores,
        )


async def load_period(
    start: Optional[date] = Query(None, description="Data inicial (YYYY-MM-DD); padrão: início do mês"),
    end: Optional[date] = Query(None, description="Data final (YYYY-MM-DD); padrão: fim do mês"),
    store_id: Optional[int] = Query(None),
    vistoriador_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    _user: UserInfo = Depends(RequireAdmin),
) -> PeriodData:
    """Caixas, despesas e cadastros do período: base de todos os indicadores do painel."""
    start = start or month_start()
    end = end or month_end()
    return PeriodData(
        start=start,
        end=end,
        cash_boxes=await fetch_cash_boxes_by_range(db, start, end, store_id, vistoriador_id),
        fixed_expenses=await fetch_fixed_expenses(db, start, end, store_id),
        variable_expenses=await fetch_variable_expenses(db, start, end, store_id, vistoriador_id),
        service_types=await fetch_service_types(db),
        stores=await fetch_stores(db),
        store_id=store_id,
    )


@router.get("/monthly-summary", response_model=MonthlySummaryResponse)
async def monthly_summary(period: PeriodData = Depends(load_period)):
    items = summarize_cash_boxes(period.cash_boxes, period.fixed_expenses)
    return MonthlySummaryResponse(items=items, totals=overall_totals(items))


@router.get("/metrics", response_model=AdminMetrics)
async def admin_metrics(period: PeriodData = Depends(load_period)):
    return period.metrics()


@router.get("/charts/pareto", response_model=list[ParetoRow])
async def pareto_chart(period: PeriodData = Depends(load_period)):
    """Serviços por margem, com percentual acumulado."""
    metrics = period.metrics()
    return build_pareto(pareto_inputs(metrics.services, metrics.variable_expenses_total_cents))


@router.get("/charts/waterfall", response_model=WaterfallChart)
async def waterfall_chart(period: PeriodData = Depends(load_period)):
    totals = overall_totals(summarize_cash_boxes(period.cash_boxes, period.fixed_expenses))
    return build_waterfall(period.store_name, build_waterfall_steps(totals))


@router.get("/charts/margin", response_model=MarginCharts)
async def margin_charts(period: PeriodData = Depends(load_period)):
    return MarginCharts(
        bars=build_margin_chart(period.cash_boxes),
        percentage=build_margin_percentage_chart(period.cash_boxes),
    )


@router.get("/charts/trend", response_model=list[TrendPoint])
async def trend_chart(period: PeriodData = Depends(load_period)):
    return build_trend(period.metrics().monthly_performance)


@router.get("/charts/heatmap", response_model=HeatmapChart)
async def heatmap_chart(period: PeriodData = Depends(load_period)):
    return build_heatmap(period.cash_boxes)


@router.get("/dre", response_model=DreReport)
async def dre_report(period: PeriodData = Depends(load_period)):
    metrics = period.metrics()
    return build_dre(
        metrics.total_value_cents,
        metrics.variable_expenses_total_cents,
        metrics.fixed_expenses_total_cents,
        metrics.net_result_cents,
    )


def _row(*cells) -> str:
    return ";".join('"' + str(c).replace('"', '""') + '"' for c in cells) + "\r\n"


def _reais(cents: int) -> str:
    return str(cents_to_reais(cents)).replace(".", ",")


@router.get("/export")
async def analytics_export(period: PeriodData = Depends(load_period)):
    """Resumo mensal do período em CSV (separador ';', valores em reais)."""
    items = summarize_cash_boxes(period.cash_boxes, period.fixed_expenses)
    totals = overall_totals(items)
    lines = [
        _row("Loja", period.store_name),
        _row("Período", f"{format_date(period.start)} a {format_date(period.end)}"),
        _row(""),
        _row(
            "Mês",
            "Faturamento",
            "PIX",
            "Cartão",
            "Despesas variáveis",
            "Líquido",
            "Despesas fixas",
            "Resultado",
        ),
    ]
    for s in items:
        lines.append(
            _row(
                s.month_label,
                _reais(s.gross),
                _reais(s.pix),
                _reais(s.cartao),
                _reais(s.expenses_variable),
                _reais(s.net),
                _reais(s.fixed_expenses),
                _reais(s.net_after_fixed),
            )
        )
    lines.append(
        _row(
            "Total",
            _reais(totals.gross),
            _reais(totals.pix),
            _reais(totals.cartao),
            _reais(totals.expenses_variable),
            _reais(totals.net),
            _reais(totals.fixed_expenses),
            _reais(totals.net_after_fixed),
        )
    )
    content = "\ufeff" + "".join(lines)  # BOM para o Excel abrir em UTF-8
    filename = f"resumo_{period.start.isoformat()}_{period.end.isoformat()}.csv"
    return StreamingResponse(
        iter([content]),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
