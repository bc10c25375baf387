from __future__ import annotations

from typing import Dict, List


STATUS_GROUPS: Dict[str, List[Dict[str, str]]] = {
    "pedido": [
        {
            "key": "PENDENTE",
            "label": "Pendente",
            "description": "Pedido aguardando retorno do PCP sobre a previsao de entrega.",
        },
        {
            "key": "RESPONDIDO",
            "label": "Respondido",
            "description": "PCP respondeu a solicitacao com uma previsao de entrega.",
        },
        {
            "key": "ATRASADO",
            "label": "Atrasado",
            "description": "Previsao de entrega vencida sem faturamento do pedido.",
        },
        {
            "key": "CONCLUIDO",
            "label": "Concluido",
            "description": "Pedido faturado ou expedido.",
        },
    ],
    "solicitacao": [
        {
            "key": "aguardando_resposta",
            "label": "Aguardando resposta",
            "description": "Solicitacao enviada ao PCP ainda sem resposta.",
        },
        {
            "key": "respondida",
            "label": "Respondida",
            "description": "Solicitacao com data de resposta registrada.",
        },
    ],
}


MESSAGES: Dict[str, Dict[str, str]] = {
    "success": {
        "import_completed": "Importacao concluida! {created} novos pedidos, {updated} atualizados.",
        "order_saved": "Pedido salvo com sucesso.",
        "order_deleted": "Pedido excluido com sucesso.",
        "order_status_updated": "Status do pedido atualizado.",
        "request_saved": "Solicitacao de follow-up registrada.",
        "response_saved": "Resposta registrada com sucesso.",
        "overdue_followup_saved": "Cobranca registrada para o pedido atrasado.",
        "overdue_orders_marked": "{count} pedido(s) marcado(s) como atrasado(s).",
        "encoding_repaired": "{count} registro(s) com acentuacao corrigida.",
        "duplicates_removed": "{count} solicitacao(oes) duplicada(s) removida(s).",
        "settings_saved": "Configuracoes salvas com sucesso.",
    },
    "error": {
        "action_invalid": "Acao invalida para esta operacao.",
        "client_name_required": "Informe o nome do cliente.",
        "forecast_missing": "Pedido sem previsao de entrega para cobrar.",
        "import_file_missing": "Nenhum arquivo enviado",
        "import_header_not_found": (
            "Cabecalho nao encontrado. Verifique se o arquivo tem as colunas "
            "'PV'/'Numero' e 'Cliente'."
        ),
        "order_not_found": "Pedido nao encontrado.",
        "order_not_overdue": "Prazo ainda nao venceu.",
        "pv_code_duplicated": "Ja existe um pedido com este PV.",
        "pv_code_invalid": "PV informado e invalido.",
        "request_not_found": "Solicitacao de follow-up nao encontrada.",
        "request_missing": "Nenhuma solicitacao encontrada para o pedido.",
        "response_required": "Informe a resposta do PCP.",
        "status_invalid": "Status informado e invalido para o pedido.",
        "unexpected_error": "Nao foi possivel concluir a operacao.",
    },
}


def all_status_items() -> List[Dict[str, str]]:
    items: List[Dict[str, str]] = []
    for statuses in STATUS_GROUPS.values():
        items.extend(statuses)
    return items


def build_status_labels() -> Dict[str, str]:
    labels: Dict[str, str] = {}
    for item in all_status_items():
        labels[item["key"]] = item["label"]
    return labels


STATUS_LABELS = build_status_labels()


def get_message(category: str, key: str, default: str | None = None) -> str:
    message = MESSAGES.get(category, {}).get(key)
    if message:
        return message
    if default is not None:
        return default
    return key


def error_message(key: str, default: str | None = None) -> str:
    return get_message("error", key, default)


def success_message(key: str, default: str | None = None) -> str:
    return get_message("success", key, default)


def status_label(status: str | None) -> str:
    key = str(status or "").strip().upper()
    return STATUS_LABELS.get(key, key)
