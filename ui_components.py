# ui_components.py
import plotly.express as px
import streamlit as st


def grafico_progresso(df):
    """df: saída de core.indicadores.progresso_por_subpacote"""
    if df is None or df.empty:
        st.info("Sem subpacotes para exibir.")
        return
    fig = px.bar(df, x="Subpacote", y="Progresso médio", text="Progresso médio", range_y=[0, 100])
    fig.update_traces(texttemplate="%{text}%", marker_color="#2D6A4F")
    fig.update_layout(plot_bgcolor="white", xaxis_title="Subpacote", yaxis_title="Progresso médio (%)")
    st.plotly_chart(fig, use_container_width=True)


def mostrar_erro(exc: Exception):
    st.error(str(exc) or "Erro inesperado.")
