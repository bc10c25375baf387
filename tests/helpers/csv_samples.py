from __future__ import annotations

from typing import Iterable, Sequence


OLD_HEADER = (
    "PV",
    "Cliente",
    "Vend.",
    "Solicitante",
    "Solicitado",
    "Dt. Sol.",
    "Dt. Resp.",
    "Data Ped.",
    "Previsão",
    "Observação",
    "Faturado",
    "Dt. Faturamento",
)

NEW_HEADER = (
    "Número",
    "Cliente",
    "Vendedor",
    "Dt. Cadastro",
    "Nro. Nfe.",
    "Dt. Nfe.",
    "Dt. Saída",
    "Dt. Prev. Fechamento",
)

DEFAULT_PREAMBLE = ("Relatorio de follow-up de pedidos", "Emitido em 19/10/2026")


def old_row(
    pv: str,
    *,
    cliente: str = "Metalurgica Alfa",
    vendedor: str = "Carlos",
    solicitante: str = "Ana",
    solicitado: str = "PCP",
    dt_sol: str = "01/10/2026",
    dt_resp: str = "",
    data_ped: str = "28/09/2026",
    previsao: str = "",
    obs: str = "",
    faturado: str = "Nao",
    dt_fat: str = "",
) -> str:
    return ";".join(
        [pv, cliente, vendedor, solicitante, solicitado, dt_sol, dt_resp, data_ped, previsao, obs, faturado, dt_fat]
    )


def new_row(
    numero: str,
    *,
    cliente: str = "Construtora Beta",
    vendedor: str = "Paula",
    dt_cadastro: str = "15/09/2026",
    nfe: str = "",
    dt_nfe: str = "",
    dt_saida: str = "",
    previsao: str = "",
) -> str:
    return ";".join([numero, cliente, vendedor, dt_cadastro, nfe, dt_nfe, dt_saida, previsao])


def build_csv(
    header: Sequence[str],
    rows: Iterable[str],
    *,
    preamble: Sequence[str] = DEFAULT_PREAMBLE,
    encoding: str = "utf-8",
    newline: str = "\r\n",
) -> bytes:
    lines = list(preamble) + [";".join(header)] + list(rows)
    return newline.join(lines).encode(encoding)


def old_csv(rows: Iterable[str], **kwargs) -> bytes:
    return build_csv(OLD_HEADER, rows, **kwargs)


def new_csv(rows: Iterable[str], **kwargs) -> bytes:
    return build_csv(NEW_HEADER, rows, **kwargs)
