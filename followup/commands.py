from __future__ import annotations

from pathlib import Path

import click
from flask import Flask

from followup.application.followup_service import FollowUpService
from followup.application.import_service import run_import
from followup.application.maintenance_service import MaintenanceService
from followup.db import get_db
from followup.ingest.dates import format_br_date
from followup.ui_strings import success_message


def register_followup_cli(app: Flask) -> None:
    @app.cli.group("followup")
    def followup_group() -> None:
        """Importacao de planilhas e rotinas de follow-up de pedidos."""

    @followup_group.command("import")
    @click.argument("csv_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
    def import_command(csv_path: Path) -> None:
        result = run_import(get_db(), app.config, csv_path.read_bytes())
        if not result.success:
            raise click.ClickException(result.message)
        click.echo(result.message)
        if result.skipped_count or result.duplicate_count:
            click.echo(f"Linhas ignoradas: {result.skipped_count}. PVs repetidos: {result.duplicate_count}.")
        for pv_code, error in result.failures:
            click.echo(f"Falha no PV {pv_code}: {error}", err=True)

    @followup_group.command("mark-overdue")
    @click.option("--date", "reference_date", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
    def mark_overdue_command(reference_date) -> None:
        today = reference_date.date() if reference_date else None
        count = FollowUpService().mark_overdue_orders(get_db(), today)
        click.echo(success_message("overdue_orders_marked").format(count=count))

    @followup_group.command("repair-encoding")
    def repair_encoding_command() -> None:
        counts = MaintenanceService().repair_encoding(get_db())
        click.echo(success_message("encoding_repaired").format(count=sum(counts.values())))

    @followup_group.command("dedupe-requests")
    def dedupe_requests_command() -> None:
        removed = MaintenanceService().remove_duplicate_requests(get_db())
        click.echo(success_message("duplicates_removed").format(count=removed))

    @followup_group.command("delayed")
    def delayed_command() -> None:
        orders = FollowUpService().list_delayed_orders(get_db())
        if not orders:
            click.echo("Nenhum pedido atrasado.")
            return
        for order in orders:
            click.echo(
                f"PV {order['pv_code']} | {order['client_name']} | "
                f"previsao {format_br_date(order['forecast_date']) or '-'}"
            )

    @followup_group.command("pending-requests")
    @click.option("--days", "min_days", type=int, default=None, help="Dias sem resposta.")
    def pending_requests_command(min_days: int | None) -> None:
        if min_days is None:
            min_days = int(app.config.get("PENDING_RESPONSE_ALERT_DAYS", 3))
        pending = FollowUpService().list_pending_requests(get_db(), min_days=min_days)
        click.echo(f"{len(pending)} solicitacao(oes) sem resposta ha mais de {min_days} dia(s).")
        for request in pending:
            click.echo(
                f"PV {request['pv_code']} | {request['client_name']} | "
                f"solicitado em {format_br_date(request['request_date'])}"
            )
