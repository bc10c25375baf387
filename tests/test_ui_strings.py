import unittest

from followup.domain.status import ORDER_STATUSES
from followup.ui_strings import (
    MESSAGES,
    STATUS_GROUPS,
    error_message,
    status_label,
    success_message,
)


class UiStringsStatusGroupsTest(unittest.TestCase):
    def test_required_status_groups_exist(self) -> None:
        self.assertTrue({"pedido", "solicitacao"}.issubset(set(STATUS_GROUPS.keys())))

    def test_every_order_status_has_a_label(self) -> None:
        keys = {item["key"] for item in STATUS_GROUPS["pedido"]}
        self.assertEqual(keys, set(ORDER_STATUSES))

    def test_status_labels_are_not_empty(self) -> None:
        for group_name, statuses in STATUS_GROUPS.items():
            for status in statuses:
                label = (status.get("label") or "").strip()
                self.assertTrue(label, f"label vazio em {group_name}:{status.get('key')}")

    def test_status_descriptions_are_not_empty(self) -> None:
        for group_name, statuses in STATUS_GROUPS.items():
            for status in statuses:
                description = (status.get("description") or "").strip()
                self.assertTrue(description, f"descricao vazia em {group_name}:{status.get('key')}")

    def test_status_label_lookup(self) -> None:
        self.assertEqual(status_label("atrasado"), "Atrasado")
        self.assertEqual(status_label(" concluido "), "Concluido")
        self.assertEqual(status_label("desconhecido"), "DESCONHECIDO")
        self.assertEqual(status_label(None), "")


class UiStringsMessagesTest(unittest.TestCase):
    def test_messages_are_ascii(self) -> None:
        for category, messages in MESSAGES.items():
            for key, text in messages.items():
                self.assertTrue(text.isascii(), f"mensagem com acento em {category}:{key}")

    def test_lookup_fallbacks(self) -> None:
        self.assertEqual(error_message("order_not_overdue"), "Prazo ainda nao venceu.")
        self.assertEqual(error_message("nao_existe", "padrao"), "padrao")
        self.assertEqual(error_message("nao_existe"), "nao_existe")

    def test_import_summary_template(self) -> None:
        text = success_message("import_completed").format(created=3, updated=2)
        self.assertEqual(text, "Importacao concluida! 3 novos pedidos, 2 atualizados.")


if __name__ == "__main__":
    unittest.main()
