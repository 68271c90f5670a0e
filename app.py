import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import Dict, List, Optional

from core.data import DashboardStore, FeedError, prepare_context
from core.filters import DashboardFilters, select_all_channels, toggle_channel
from core.formatting import format_brl, format_date_br
from core.metrics_detail import detail_frame
from core.settings import configure_logging, load_settings


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #1f2937;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #9ca3af;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #e5e7eb;}
        .card {border: 1px solid #1f2937;border-radius: 12px;padding: 16px;background: #0f172a;
               box-shadow: 0 1px 2px rgba(0,0,0,0.2); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #e5e7eb;}
        .card-actions {font-size: 0.9rem;color: #22c55e;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #111827;border: 1px solid #1f2937;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #d1d5db;}
        .footnote {color: #9ca3af;font-size: 0.8rem;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, actions: Optional[str] = None):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
            <div class="card-actions">{actions or ""}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(filters: DashboardFilters, range_payload: Dict[str, Optional[str]]) -> str:
    if range_payload.get("start") and range_payload.get("end"):
        start = format_date_br(pd.Timestamp(range_payload["start"]))
        end = format_date_br(pd.Timestamp(range_payload["end"]))
        period_chip = f"Período: {start} – {end}"
    else:
        period_chip = "Período: Todos"
    mode_chip = "Últimos 7 dias" if filters.period == "last-7-days" else "Personalizado"
    channel_chip = f"Canais: {', '.join(filters.selected_channels)}"
    return "".join([f"<span class='chip'>{txt}</span>" for txt in [mode_chip, period_chip, channel_chip]])


# ---------- Session state ----------
def get_store() -> DashboardStore:
    if "store" not in st.session_state:
        st.session_state["store"] = DashboardStore(settings)
    return st.session_state["store"]


def do_reload(store: DashboardStore) -> None:
    try:
        data = store.reload()
    except FeedError:
        return
    # a successful reload overwrites any manual channel choice
    st.session_state["selected_channels"] = tuple(data["default_channels"])
    st.session_state["channel_rev"] = st.session_state.get("channel_rev", 0) + 1


def on_toggle(channel: str) -> None:
    st.session_state["selected_channels"] = toggle_channel(st.session_state["selected_channels"], channel)
    st.session_state["channel_rev"] = st.session_state.get("channel_rev", 0) + 1


def on_select_all() -> None:
    st.session_state["selected_channels"] = select_all_channels(settings.canonical_channels)
    st.session_state["channel_rev"] = st.session_state.get("channel_rev", 0) + 1


def render_kpis(kpis: List[Dict[str, object]]) -> None:
    cols = st.columns(len(kpis))
    for col, kpi in zip(cols, kpis):
        col.metric(str(kpi["label"]), str(kpi["display"]), help="Variação vs período anterior ainda não calculada.")


# ---------- UI setup ----------
settings = load_settings()
configure_logging(settings)

st.set_page_config(page_title="Dashboard de Vendas & Mídia", layout="wide")
inject_base_styles()
store = get_store()
if not store.loaded and store.last_error is None:
    with st.spinner("Carregando planilhas..."):
        do_reload(store)

st.session_state.setdefault("selected_channels", select_all_channels(settings.canonical_channels))
st.session_state.setdefault("channel_rev", 0)

# ----- Sidebar: filters -----
with st.sidebar:
    st.markdown("### Período")
    period_label = st.radio("Período", ["Personalizado", "Últimos 7 dias"], index=0, label_visibility="collapsed")
    period = "last-7-days" if period_label == "Últimos 7 dias" else "custom"
    picked = st.date_input(
        "Intervalo",
        value=(settings.default_start, settings.default_end),
        format="DD/MM/YYYY",
        disabled=period == "last-7-days",
    )
    start, end = (picked[0], picked[1]) if isinstance(picked, (list, tuple)) and len(picked) == 2 else (None, None)

    st.markdown("---")
    st.markdown("### Canais")
    st.button("Todos", on_click=on_select_all)
    rev = st.session_state["channel_rev"]
    for ch in settings.canonical_channels:
        st.checkbox(
            ch,
            value=ch in st.session_state["selected_channels"],
            key=f"channel_{ch}_{rev}",
            on_change=on_toggle,
            args=(ch,),
        )

    st.markdown("---")
    if st.button("⟳ Recarregar"):
        with st.spinner("Recarregando..."):
            do_reload(store)
        st.rerun()

filters = DashboardFilters(
    period=period,
    start=start,
    end=end,
    selected_channels=tuple(st.session_state["selected_channels"]),
)

if store.last_error:
    st.error(f"Erro ao carregar CSVs: {store.last_error}")
    if st.button("Tentar novamente"):
        do_reload(store)
        st.rerun()
    if not store.loaded:
        st.stop()

snapshot = store.snapshot(filters)
detail_df = detail_frame(prepare_context(filters, store.current()))

top = st.container()
c1, c2 = top.columns([8, 2])
with c1:
    st.markdown(
        "<div class='app-top-bar'><div class='breadcrumb'>Vendas &amp; Mídia</div><div class='page-title'>Dashboard Consolidado</div></div>",
        unsafe_allow_html=True,
    )
with c2:
    if not detail_df.empty:
        st.download_button(
            "Exportar CSV",
            data=detail_df.to_csv(index=False).encode("utf-8"),
            file_name="detalhe.csv",
            mime="text/csv",
        )
st.markdown(f"<div class='chip-row'>{format_filter_summary(filters, snapshot['range'])}</div>", unsafe_allow_html=True)

render_kpis(snapshot["kpis"])

charts = snapshot["charts"]
trend_cols = st.columns(2)
with trend_cols[0]:
    with card("Faturamento x Investimento"):
        if "revenue_vs_spend" in charts:
            st.vega_lite_chart(charts["revenue_vs_spend"], use_container_width=True)
        else:
            st.info("Sem dados no período selecionado.")
with trend_cols[1]:
    with card("Pedidos por dia"):
        if "orders_trend" in charts:
            st.vega_lite_chart(charts["orders_trend"], use_container_width=True)
        else:
            st.info("Sem dados no período selecionado.")

donut_cols = st.columns(2)
with donut_cols[0]:
    with card("Faturamento por canal"):
        if "revenue_by_channel" in charts:
            st.vega_lite_chart(charts["revenue_by_channel"], use_container_width=True)
        else:
            st.info("Sem faturamento para os canais selecionados.")
with donut_cols[1]:
    with card("Pedidos por canal"):
        if "orders_by_channel" in charts:
            st.vega_lite_chart(charts["orders_by_channel"], use_container_width=True)
        else:
            st.info("Sem pedidos para os canais selecionados.")

with card("Detalhamento por dia e canal"):
    if detail_df.empty:
        st.info("Nenhum registro para os filtros atuais.")
    else:
        display = detail_df.assign(faturamento=detail_df["faturamento"].apply(format_brl))
        st.dataframe(display, hide_index=True, use_container_width=True)
    st.markdown(
        "<div class='footnote'>* CAC depende de “clientes novos” na aba investimento. Se estiver vazio, CAC ficará 0.</div>",
        unsafe_allow_html=True,
    )
