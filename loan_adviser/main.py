"""Command‑line interface for the loan adviser.

This module uses the ``click`` library to implement a multi‑command
interface. Users can print the installment schedule of a loan, project cash
flow over the coming months (optionally simulating rolling loans), save and
load loan configurations, and maintain the payment ledger the projections
start from. Results can be printed to the terminal or exported to JSON/CSV
files.
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple
from uuid import uuid4

import click

from . import config
from .cashflow import run_projection
from .configuration import load_configuration, save_configuration
from .data_models import BiWeeklyConvention, Installment, PaymentFrequency, ProjectionResult, ProjectionRow
from .engine import generate_installments
from .formatter import currency_for, print_installments, print_projection, print_statistics
from .ledger_store import create_ledger_from_env
from .utils import parse_year_month
from .validation import LoanInputError, normalize_request, validate_request

SCHEME_CHOICES = [f.value for f in PaymentFrequency] + ["biweekly"]
CONVENTION_CHOICES = [c.value for c in BiWeeklyConvention]


def expand_amount(value: str) -> str:
    """Expand shorthand amounts with ``k``/``m`` suffixes.

    "50k" becomes "50000" and "1.5m" becomes "1500000". Anything that does
    not look like a shorthand amount is returned unchanged so validation can
    report it.
    """
    cleaned = value.strip().lower().replace(",", "")
    factor = None
    if cleaned.endswith("k"):
        factor = 1_000
    elif cleaned.endswith("m"):
        factor = 1_000_000
    if factor is None:
        return value
    try:
        return str(float(cleaned[:-1]) * factor)
    except ValueError:
        return value


def parse_date_option(value: Optional[str], name: str) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"{name} must be in YYYY-MM-DD format; got {value}")


def parse_receivable_strings(values: Tuple[str, ...]) -> List[Dict[str, Any]]:
    entries: List[Dict[str, Any]] = []
    for item in values:
        parts = item.split(":", 2)
        if len(parts) < 2:
            raise click.BadParameter(
                f"Receivable must be in YYYY-MM:AMOUNT[:DESCRIPTION] format; got {item}"
            )
        ym, amount = parts[0], parts[1]
        try:
            parse_year_month(ym)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        entries.append(
            {"monthKey": ym, "amount": expand_amount(amount), "description": parts[2] if len(parts) == 3 else ""}
        )
    return entries


def parse_recurring_strings(values: Tuple[str, ...]) -> List[Dict[str, Any]]:
    entries: List[Dict[str, Any]] = []
    for item in values:
        parts = item.split(":", 3)
        if len(parts) < 3:
            raise click.BadParameter(
                f"Recurring receivable must be in YYYY-MM:AMOUNT:FREQUENCY[:DESCRIPTION] format; got {item}"
            )
        ym, amount, frequency = parts[0], parts[1], parts[2].lower()
        try:
            parse_year_month(ym)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        if frequency not in ("monthly", "quarterly", "annually"):
            raise click.BadParameter(
                f"Recurring frequency must be 'monthly', 'quarterly' or 'annually'; got {frequency}"
            )
        entries.append(
            {
                "startMonthKey": ym,
                "amount": expand_amount(amount),
                "frequency": frequency,
                "description": parts[3] if len(parts) == 4 else "",
            }
        )
    return entries


def build_raw_inputs(
    config_file: Optional[str],
    amount: Optional[str],
    interest: Optional[str],
    terms: Optional[str],
    scheme: Optional[str],
    biweekly_convention: Optional[str],
    rolling: Optional[bool],
    period: Optional[str],
    threshold: Optional[str],
    manual: Optional[bool],
    receivable: Tuple[str, ...],
    recurring: Tuple[str, ...],
    manual_json: Optional[str],
    recurring_json: Optional[str],
) -> Dict[str, Any]:
    """Merge a configuration file with command-line options.

    Options given on the command line win over the configuration file.
    """
    raw: Dict[str, Any] = {}
    if config_file:
        try:
            raw = load_configuration(Path(config_file))
        except (OSError, ValueError) as exc:
            raise click.BadParameter(str(exc), param_hint="--config")

    overrides = {
        "loanAmount": expand_amount(amount) if amount else None,
        "interestRate": interest,
        "loanTerms": terms,
        "paymentScheme": scheme,
        "biweeklyConvention": biweekly_convention,
        "rollingLoans": rolling,
        "projectionPeriod": period,
        "threshold": expand_amount(threshold) if threshold else None,
        "useManualReceivables": manual,
    }
    for key, value in overrides.items():
        if value is not None:
            raw[key] = value

    if manual_json and receivable:
        raise click.BadParameter("Use either --receivable or --manual-json, not both")
    if manual_json:
        raw["manualReceivables"] = manual_json
    elif receivable:
        existing = raw.get("manualReceivables")
        raw["manualReceivables"] = (existing if isinstance(existing, list) else []) + parse_receivable_strings(receivable)

    if recurring_json and recurring:
        raise click.BadParameter("Use either --recurring or --recurring-json, not both")
    if recurring_json:
        raw["recurringReceivables"] = recurring_json
    elif recurring:
        existing = raw.get("recurringReceivables")
        raw["recurringReceivables"] = (existing if isinstance(existing, list) else []) + parse_recurring_strings(recurring)

    if (receivable or recurring or manual_json or recurring_json) and manual is None:
        raw["useManualReceivables"] = True
    return raw


def export_installments_json(path: Path, installments: List[Installment]) -> None:
    with path.open("w", encoding="utf-8") as f:
        json.dump({"installments": [i.to_dict() for i in installments]}, f, indent=2)


def export_installments_csv(path: Path, installments: List[Installment]) -> None:
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["Number", "Due_Date", "Month", "Amount"])
        for number, inst in enumerate(installments, start=1):
            writer.writerow([number, inst.due_date.isoformat(), inst.month_key, float(inst.amount)])


def export_projection_json(path: Path, result: ProjectionResult) -> None:
    """Export the full projection result to a JSON file."""
    with path.open("w", encoding="utf-8") as f:
        json.dump(result.to_dict(), f, indent=2)


def export_projection_csv(path: Path, rows: List[ProjectionRow]) -> None:
    """Export the projection table to a CSV file."""
    header = [
        "Month_Key",
        "Month",
        "Existing_Receivables",
        "Potential_Payment",
        "Total_Receivables",
        "New_Loans_Issued",
        "Running_Capital",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for row in rows:
            writer.writerow(
                [
                    row.month_key,
                    row.month_label,
                    float(row.existing_receivables),
                    float(row.potential_payment),
                    float(row.total_receivables),
                    "" if row.new_loans_issued is None else row.new_loans_issued,
                    "" if row.running_capital is None else float(row.running_capital),
                ]
            )


def _loan_options(func: Callable) -> Callable:
    options = [
        click.option("--amount", "-a", "amount", help="Loan amount per loan (e.g. 50000 or 50k)"),
        click.option("--interest", "-i", "interest", help="Interest rate in percent per month"),
        click.option("--terms", "-t", "terms", help="Loan term in months"),
        click.option("--scheme", "scheme", type=click.Choice(SCHEME_CHOICES, case_sensitive=False), help="Payment scheme"),
        click.option(
            "--biweekly-convention",
            "biweekly_convention",
            type=click.Choice(CONVENTION_CHOICES),
            help="Bi-weekly due dates: every 14 days or on the 1st and 15th",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _projection_options(func: Callable) -> Callable:
    options = [
        click.option("--config", "config_file", type=click.Path(exists=True, dir_okay=False), help="Load a loan configuration file"),
        click.option("--rolling/--single", "rolling", default=None, help="Simulate rolling loans instead of a single loan"),
        click.option("--period", "-n", "period", help="Projection period in months"),
        click.option("--threshold", "threshold", help="Capital required before rolling loans are issued"),
        click.option("--manual/--scheduled", "manual", default=None, help="Use manual receivables instead of the payment ledger"),
        click.option("--receivable", "receivable", multiple=True, help="Manual receivable in YYYY-MM:AMOUNT[:DESCRIPTION] format"),
        click.option("--recurring", "recurring", multiple=True, help="Recurring receivable in YYYY-MM:AMOUNT:FREQUENCY[:DESCRIPTION] format"),
        click.option("--manual-json", "manual_json", help="Manual receivables as a JSON list"),
        click.option("--recurring-json", "recurring_json", help="Recurring receivables as a JSON list"),
        click.option("--strict", is_flag=True, help="Reject invalid inputs instead of falling back to defaults"),
    ]
    for option in reversed(options):
        func = option(func)
    return _loan_options(func)


def _build_request(raw: Dict[str, Any], strict: bool):
    if not strict:
        return normalize_request(raw)
    try:
        return validate_request(raw)
    except LoanInputError as exc:
        raise click.BadParameter(str(exc))


@click.group()
@click.option("--log-level", "log_level", default=None, help="Logging level (DEBUG, INFO, WARNING, ...)")
def cli(log_level: Optional[str]) -> None:
    """Loan adviser: payment schedules and cash-flow projections for a lending book."""
    logging.basicConfig(
        level=(log_level or config.LOG_LEVEL).upper(),
        format="%(asctime)s - [%(levelname)s] - %(name)s - %(message)s",
    )


@cli.command()
@_loan_options
@click.option("--start-date", "-s", "start_date", help="Loan start date (YYYY-MM-DD, default today)")
@click.option("--currency", "currency", default="USD", help="Currency used for display")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    amount: Optional[str],
    interest: Optional[str],
    terms: Optional[str],
    scheme: Optional[str],
    biweekly_convention: Optional[str],
    start_date: Optional[str],
    currency: str,
    output: Optional[str],
) -> None:
    """Compute and print the installment schedule of one loan."""
    raw = {
        "loanAmount": expand_amount(amount) if amount else None,
        "interestRate": interest,
        "loanTerms": terms,
        "paymentScheme": scheme,
        "biweeklyConvention": biweekly_convention,
    }
    request = _build_request(raw, strict=True)
    start = parse_date_option(start_date, "--start-date") or date.today()
    installments = generate_installments(request.loan_terms, start)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_installments_json(path, installments)
        elif path.suffix.lower() == ".csv":
            export_installments_csv(path, installments)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Schedule exported to {path}")
    else:
        print_installments(installments, currency_for(currency))


@cli.command()
@_projection_options
@click.option("--today", "today", help="Projection anchor date (YYYY-MM-DD, default today)")
@click.option("--ledger-url", "ledger_url", help="Payment ledger database URL")
@click.option("--currency", "currency", default="USD", help="Currency used for display")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def project(
    amount: Optional[str],
    interest: Optional[str],
    terms: Optional[str],
    scheme: Optional[str],
    biweekly_convention: Optional[str],
    config_file: Optional[str],
    rolling: Optional[bool],
    period: Optional[str],
    threshold: Optional[str],
    manual: Optional[bool],
    receivable: Tuple[str, ...],
    recurring: Tuple[str, ...],
    manual_json: Optional[str],
    recurring_json: Optional[str],
    strict: bool,
    today: Optional[str],
    ledger_url: Optional[str],
    currency: str,
    output: Optional[str],
) -> None:
    """Project monthly receivables, optionally simulating rolling loans."""
    raw = build_raw_inputs(
        config_file, amount, interest, terms, scheme, biweekly_convention, rolling,
        period, threshold, manual, receivable, recurring, manual_json, recurring_json,
    )
    request = _build_request(raw, strict)
    anchor = parse_date_option(today, "--today") or date.today()

    scheduled = None
    if not request.use_manual_receivables:
        scheduled = create_ledger_from_env(ledger_url).unpaid_due_from(anchor)
    result = run_projection(request, scheduled, anchor)

    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_projection_json(path, result)
        elif path.suffix.lower() == ".csv":
            export_projection_csv(path, result.projection)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Projection exported to {path}")
    else:
        fmt = currency_for(currency)
        print_statistics(result.statistics, fmt)
        print_projection(result.projection, fmt)


@cli.command("export-config")
@_projection_options
@click.option("--output", "output", required=True, type=str, help="Configuration file to write (.json)")
def export_config(
    amount: Optional[str],
    interest: Optional[str],
    terms: Optional[str],
    scheme: Optional[str],
    biweekly_convention: Optional[str],
    config_file: Optional[str],
    rolling: Optional[bool],
    period: Optional[str],
    threshold: Optional[str],
    manual: Optional[bool],
    receivable: Tuple[str, ...],
    recurring: Tuple[str, ...],
    manual_json: Optional[str],
    recurring_json: Optional[str],
    strict: bool,
    output: str,
) -> None:
    """Save the loan parameters and receivables to a configuration file."""
    path = Path(output)
    if path.suffix.lower() != ".json":
        raise click.BadParameter("Configuration export must use .json extension")
    raw = build_raw_inputs(
        config_file, amount, interest, terms, scheme, biweekly_convention, rolling,
        period, threshold, manual, receivable, recurring, manual_json, recurring_json,
    )
    save_configuration(path, _build_request(raw, strict))
    click.echo(f"Configuration exported to {path}")


@cli.group()
@click.option("--ledger-url", "ledger_url", help="Payment ledger database URL")
@click.pass_context
def ledger(ctx: click.Context, ledger_url: Optional[str]) -> None:
    """Maintain the payment ledger used for scheduled receivables."""
    ctx.obj = create_ledger_from_env(ledger_url)


@ledger.command("add-loan")
@_loan_options
@click.option("--loan-id", "loan_id", help="Loan identifier (generated when omitted)")
@click.option("--start-date", "-s", "start_date", required=True, help="Loan start date (YYYY-MM-DD)")
@click.pass_obj
def ledger_add_loan(
    store,
    amount: Optional[str],
    interest: Optional[str],
    terms: Optional[str],
    scheme: Optional[str],
    biweekly_convention: Optional[str],
    loan_id: Optional[str],
    start_date: str,
) -> None:
    """Generate a loan's installments and record them as unpaid payments."""
    raw = {
        "loanAmount": expand_amount(amount) if amount else None,
        "interestRate": interest,
        "loanTerms": terms,
        "paymentScheme": scheme,
        "biweeklyConvention": biweekly_convention,
    }
    request = _build_request(raw, strict=True)
    start = parse_date_option(start_date, "--start-date")
    loan_id = loan_id or uuid4().hex
    ids = store.add_loan_schedule(loan_id, generate_installments(request.loan_terms, start))
    click.echo(f"Recorded {len(ids)} payments for loan {loan_id}")


@ledger.command("remove-loan")
@click.argument("loan_id")
@click.pass_obj
def ledger_remove_loan(store, loan_id: str) -> None:
    """Delete every recorded payment of a loan."""
    if not store.list_payments(loan_id):
        raise click.ClickException(f"Loan '{loan_id}' not found.")
    store.remove_loan(loan_id)
    click.echo(f"Removed loan {loan_id}")


@ledger.command("list")
@click.option("--loan-id", "loan_id", help="Only show payments of this loan")
@click.pass_obj
def ledger_list(store, loan_id: Optional[str]) -> None:
    """List recorded payments."""
    click.echo("\t".join(["Id", "Loan", "Due date", "Amount", "Paid"]))
    for payment in store.list_payments(loan_id):
        click.echo(
            "\t".join(
                [
                    payment["id"],
                    payment["loan_id"],
                    payment["due_date"],
                    f"{payment['amount']:.2f}",
                    payment["paid_on"] or "No",
                ]
            )
        )


@ledger.command("mark-paid")
@click.argument("payment_id")
@click.option("--paid-on", "paid_on", help="Payment date (YYYY-MM-DD, default today)")
@click.pass_obj
def ledger_mark_paid(store, payment_id: str, paid_on: Optional[str]) -> None:
    """Mark a recorded payment as paid."""
    if not store.mark_paid(payment_id, parse_date_option(paid_on, "--paid-on")):
        raise click.ClickException(f"Payment '{payment_id}' not found.")
    click.echo(f"Payment {payment_id} marked as paid")


if __name__ == "__main__":
    cli()
