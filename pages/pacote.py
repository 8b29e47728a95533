import logging
import re

import streamlit as st

from core.constants import STATUS_OS
from core.data import ordens_para_df
from core.errors import ErroPainel
from core.formatters import fmt_data_br, fmt_percentual, fmt_status
from core.indicadores import calcular_indicadores, progresso_por_subpacote
from core.reports import gerar_relatorio_pacote_pdf
from core.servicos import alternar_status, atualizar_progresso, remover_subpacote
from core.sheets import DocumentStore
from ui_components import grafico_progresso

logger = logging.getLogger(__name__)

SEM_SUBPACOTE = "__sem__"


def _falhou(msg: str, exc: Exception):
    logger.exception(msg)
    st.session_state["erro_pacote"] = str(exc)


def _salvar_progresso(store: DocumentStore, ordem_id: str, chave: str):
    try:
        atualizar_progresso(store, ordem_id, st.session_state[chave])
    except ErroPainel as exc:
        _falhou(f"Erro ao salvar progresso da O.S. {ordem_id}", exc)


def _alternar(store: DocumentStore, ordem_id: str):
    try:
        alternar_status(store, ordem_id)
    except ErroPainel as exc:
        _falhou(f"Erro ao alterar status da O.S. {ordem_id}", exc)


def _form_subpacote(store: DocumentStore, pacote_id: str):
    with st.form("f_subpacote", clear_on_submit=True):
        c1, c2 = st.columns([2, 3])
        nome = c1.text_input("Nome do subpacote")
        descricao = c2.text_input("Descrição")
        if st.form_submit_button("CRIAR SUBPACOTE"):
            if not nome.strip():
                st.error("Informe o nome do subpacote.")
                st.stop()
            try:
                store.subpacotes.criar({"pacote_id": pacote_id, "nome": nome.strip(), "descricao": descricao.strip()})
            except ErroPainel as exc:
                _falhou("Erro ao criar subpacote", exc)
            st.rerun()


def _form_ordem(store: DocumentStore, pacote_id: str, subpacote_id):
    with st.form("f_ordem", clear_on_submit=True):
        c1, c2, c3 = st.columns(3)
        numero_os = c1.text_input("O.S.")
        tag = c2.text_input("TAG")
        maquina = c3.text_input("Nome da máquina")
        c4, c5 = st.columns(2)
        titulo = c4.text_input("Tarefa")
        responsavel = c5.text_input("Responsável")

        if st.form_submit_button("ADICIONAR O.S."):
            if not titulo.strip():
                st.error("Informe a tarefa.")
                st.stop()
            try:
                store.ordens.criar(
                    {
                        "pacote_id": pacote_id,
                        "subpacote_id": subpacote_id,
                        "titulo": titulo.strip(),
                        "tarefa": titulo.strip(),
                        "numero_os": numero_os.strip(),
                        "tag": tag.strip(),
                        "nome_maquina": maquina.strip(),
                        "responsavel": responsavel.strip(),
                        "status": "todo",
                        "progresso": 0,
                    }
                )
            except ErroPainel as exc:
                _falhou("Erro ao criar O.S.", exc)
            st.rerun()


def _linha_ordem(store: DocumentStore, ordem, subpacotes, logs):
    with st.container(border=True):
        c1, c2, c3 = st.columns([4, 2, 2])
        c1.markdown(
            f"**O.S: {ordem.numero_os or '-'}** — {ordem.nome_maquina or 'Sem máquina'}  \n"
            f"{ordem.tarefa or ordem.titulo}  \n"
            f"<small>Responsável: {ordem.responsavel or 'Não informado'} | {fmt_status(ordem.status)}</small>",
            unsafe_allow_html=True,
        )
        chave = f"prog_{ordem.id}"
        c2.number_input(
            "Progresso (%)",
            min_value=0,
            max_value=100,
            step=5,
            value=ordem.progresso,
            key=chave,
            on_change=_salvar_progresso,
            args=(store, ordem.id, chave),
        )
        c3.button(
            "Reabrir" if ordem.status == "done" else "Concluir",
            key=f"st_{ordem.id}",
            on_click=_alternar,
            args=(store, ordem.id),
        )

        with st.expander("Editar / histórico", expanded=False):
            _editar_ordem(store, ordem, subpacotes)
            if logs:
                for log in logs:
                    st.caption(f"{fmt_data_br(log.criado_em)} — {log.mensagem}")
            else:
                st.caption("Sem histórico.")


def _editar_ordem(store: DocumentStore, ordem, subpacotes):
    opcoes_sub = [SEM_SUBPACOTE] + [s.id for s in subpacotes]
    nomes_sub = {SEM_SUBPACOTE: "Sem subpacote", **{s.id: s.nome for s in subpacotes}}
    status_opcoes = list(STATUS_OS)

    with st.form(f"f_edit_{ordem.id}"):
        c1, c2 = st.columns(2)
        titulo = c1.text_input("Título", value=ordem.titulo)
        responsavel = c2.text_input("Responsável", value=ordem.responsavel or "")
        c3, c4 = st.columns(2)
        status = c3.selectbox(
            "Status", status_opcoes, index=status_opcoes.index(ordem.status), format_func=fmt_status
        )
        sub_atual = ordem.subpacote_id if ordem.subpacote_id in nomes_sub else SEM_SUBPACOTE
        sub = c4.selectbox(
            "Subpacote", opcoes_sub, index=opcoes_sub.index(sub_atual), format_func=lambda i: nomes_sub[i]
        )

        col_a, col_b = st.columns(2)
        salvar = col_a.form_submit_button("💾 Salvar")
        excluir = col_b.form_submit_button("🗑️ Excluir O.S.")

    if salvar:
        try:
            store.ordens.atualizar(
                ordem.id,
                {
                    "titulo": titulo.strip() or ordem.titulo,
                    "responsavel": responsavel.strip(),
                    "status": status,
                    "subpacote_id": None if sub == SEM_SUBPACOTE else sub,
                },
            )
            store.logs.criar({"ordem_id": ordem.id, "mensagem": "O.S. editada"})
        except ErroPainel as exc:
            _falhou(f"Erro ao editar O.S. {ordem.id}", exc)
        st.rerun()

    if excluir:
        try:
            store.ordens.remover(ordem.id)
        except ErroPainel as exc:
            _falhou(f"Erro ao excluir O.S. {ordem.id}", exc)
        st.rerun()


def render(store: DocumentStore):
    st.markdown("### 🗂️ Pacote")

    erro = st.session_state.pop("erro_pacote", None)
    if erro:
        st.error(erro)

    pacotes = store.pacotes.listar()
    if not pacotes:
        st.info("Cadastre um pacote primeiro.")
        return

    ids = [p.id for p in pacotes]
    nomes = {p.id: p.nome for p in pacotes}
    atual = st.session_state.get("pacote_sel")
    pacote_id = st.selectbox(
        "Pacote", ids, index=ids.index(atual) if atual in ids else 0, format_func=lambda i: nomes[i]
    )
    st.session_state["pacote_sel"] = pacote_id

    subpacotes = store.subpacotes.listar_por_pacote(pacote_id)
    ordens = store.ordens.listar_por_pacote(pacote_id)

    # -------- INDICADORES --------
    ind = calcular_indicadores(ordens)
    c1, c2, c3 = st.columns(3)
    c1.metric("Processos", ind["total"])
    c2.metric("Realizados", ind["concluidas"])
    c3.metric("Progresso médio", fmt_percentual(ind["progresso_medio"]))

    df_sub = progresso_por_subpacote(ordens, subpacotes)
    grafico_progresso(df_sub)

    if st.button("📄 Gerar PDF"):
        df_ordens = ordens_para_df(ordens, subpacotes)
        pdf_bytes = gerar_relatorio_pacote_pdf(nomes[pacote_id], ind, df_sub, df_ordens)
        arquivo = re.sub(r"[^A-Za-z0-9_-]", "_", nomes[pacote_id])
        st.download_button("⬇️ Baixar PDF", pdf_bytes, file_name=f"relatorio_{arquivo}.pdf", mime="application/pdf")

    # -------- SUBPACOTES --------
    st.markdown("#### Subpacotes")
    _form_subpacote(store, pacote_id)

    opcoes = [s.id for s in subpacotes]
    rotulos = {s.id: s.nome for s in subpacotes}
    if any(o.subpacote_id is None or o.subpacote_id not in rotulos for o in ordens):
        opcoes.append(SEM_SUBPACOTE)
        rotulos[SEM_SUBPACOTE] = "Sem subpacote"

    if not opcoes:
        st.info("Nenhum subpacote neste pacote. Crie um ou importe uma planilha.")
        _form_ordem(store, pacote_id, None)
        return

    sub_id = st.radio("Subpacote", opcoes, format_func=lambda i: rotulos[i], horizontal=True)

    if sub_id != SEM_SUBPACOTE:
        sub = next(s for s in subpacotes if s.id == sub_id)
        with st.expander("🛠️ Editar / Excluir subpacote", expanded=False):
            novo_nome = st.text_input("Nome", value=sub.nome, key=f"sub_nome_{sub.id}")
            nova_desc = st.text_input("Descrição", value=sub.descricao or "", key=f"sub_desc_{sub.id}")
            col_a, col_b = st.columns(2)
            if col_a.button("💾 Salvar subpacote"):
                try:
                    store.subpacotes.atualizar(sub.id, {"nome": novo_nome.strip(), "descricao": nova_desc.strip()})
                except ErroPainel as exc:
                    _falhou(f"Erro ao editar subpacote {sub.id}", exc)
                st.rerun()
            if col_b.button("🗑️ Excluir subpacote e suas O.S."):
                try:
                    remover_subpacote(store, sub.id)
                except ErroPainel as exc:
                    _falhou(f"Erro ao excluir subpacote {sub.id}", exc)
                st.rerun()
        do_sub = [o for o in ordens if o.subpacote_id == sub_id]
    else:
        do_sub = [o for o in ordens if o.subpacote_id is None or o.subpacote_id not in {s.id for s in subpacotes}]

    st.caption("Atualize o progresso digitando a porcentagem de cada serviço. Os valores são salvos automaticamente.")
    _form_ordem(store, pacote_id, None if sub_id == SEM_SUBPACOTE else sub_id)

    if not do_sub:
        st.info("Nenhuma ordem neste subpacote.")
        return

    historico = store.logs.listar_por_ordens([o.id for o in do_sub])
    for ordem in do_sub:
        _linha_ordem(store, ordem, subpacotes, historico[ordem.id])
