from __future__ import annotations

import pandas as pd

from core.models import OrdemServico, Subpacote


def calcular_indicadores(ordens: list[OrdemServico]) -> dict:
    total = len(ordens)
    concluidas = sum(1 for o in ordens if o.status == "done")
    medio = round(sum(o.progresso for o in ordens) / total) if total else 0
    return {"total": total, "concluidas": concluidas, "progresso_medio": int(medio)}


def progresso_por_subpacote(ordens: list[OrdemServico], subpacotes: list[Subpacote]) -> pd.DataFrame:
    """Uma linha por subpacote (+ 'Sem subpacote' se houver O.S. soltas), ordenado por nome."""
    cols = ["Subpacote", "O.S.", "Concluídas", "Progresso médio"]
    if not ordens and not subpacotes:
        return pd.DataFrame(columns=cols)

    nomes = {s.id: s.nome for s in subpacotes}
    df = pd.DataFrame(
        [
            {
                "Subpacote": nomes.get(o.subpacote_id, "Sem subpacote"),
                "progresso": o.progresso,
                "concluida": o.status == "done",
            }
            for o in ordens
        ],
        columns=["Subpacote", "progresso", "concluida"],
    )

    agg = (
        df.groupby("Subpacote", as_index=False)
        .agg(**{"O.S.": ("progresso", "size"), "Concluídas": ("concluida", "sum"), "Progresso médio": ("progresso", "mean")})
    )

    # subpacotes ainda vazios também aparecem
    vazios = [n for n in nomes.values() if n not in set(agg["Subpacote"])]
    if vazios:
        agg = pd.concat(
            [agg, pd.DataFrame({"Subpacote": vazios, "O.S.": 0, "Concluídas": 0, "Progresso médio": 0.0})],
            ignore_index=True,
        )

    agg["Concluídas"] = agg["Concluídas"].astype(int)
    agg["O.S."] = agg["O.S."].astype(int)
    agg["Progresso médio"] = agg["Progresso médio"].fillna(0).round().astype(int)
    return agg.sort_values("Subpacote").reset_index(drop=True)[cols]
