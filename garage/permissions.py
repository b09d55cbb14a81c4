"""Permission catalog and role templates.

Permission names are ``<area>.<action>``. Never rename a name in place: add the
new one, migrate role templates, then retire the old one.
"""

from __future__ import annotations

from typing import Iterable

from garage.errors import ValidationError

PERMISSIONS: dict[str, str] = {
    # Administration
    "users.manage": "Create users, change roles and deactivate accounts",
    "branches.manage": "Create and rename branches",

    # Intake
    "customers.view": "View customers and their vehicles",
    "customers.manage": "Register customers, add vehicles, edit or disable customers",
    "variations.view": "View the service variation catalog",
    "variations.manage": "Create and version service variations",
    "quotations.view": "View quotations",
    "quotations.manage": "Create quotations",
    "quotations.approve": "Approve or reject quotations (creates work orders)",

    # Workshop
    "technicians.manage": "Maintain technicians and their hourly rates",
    "work_orders.view": "View work orders, parts, stages and logs",
    "work_orders.assign": "Assign technicians to stages",
    "work_orders.progress": "Start, log hours, report errors and complete stages",
    "work_orders.submit_qa": "Submit a finished work order for QA",
    "work_orders.cancel": "Request cancellation of a work order",
    "work_orders.approve_cancellation": "Approve work order cancellations",
    "qa.review": "Approve or reject QA verifications",

    # Finance
    "invoices.view": "View invoices and payments",
    "invoices.generate": "Generate invoices from completed work orders",
    "invoices.record_payment": "Record payments against invoices",
    "invoices.void": "Void unpaid invoices",
    "expenses.view": "View expenses",
    "expenses.manage": "Record and edit expenses",
    "payroll.view": "View timesheets and pay stubs",
    "payroll.manage": "Record timesheets and compute pay stubs",

    # Support & messaging
    "cases.view": "View cases",
    "cases.manage": "Open, update and comment on cases",
    "messages.send": "Start conversations and send messages",
    "uploads.create": "Upload photos, receipts and voice notes",
}


ROLE_TEMPLATES: dict[str, dict] = {
    "admin": {
        "desc": "Full access to all system features.",
        "perms": frozenset(PERMISSIONS),
    },
    "manager": {
        "desc": "Runs a branch: workshop supervision, approvals and finance.",
        "perms": frozenset(p for p in PERMISSIONS if p not in ("users.manage", "branches.manage")),
    },
    "service_advisor": {
        "desc": "Front desk: intake, quotations, cases and invoicing.",
        "perms": frozenset({
            "customers.view", "customers.manage",
            "variations.view",
            "quotations.view", "quotations.manage", "quotations.approve",
            "work_orders.view", "work_orders.assign", "work_orders.cancel",
            "invoices.view", "invoices.generate", "invoices.record_payment",
            "cases.view", "cases.manage",
            "messages.send", "uploads.create",
        }),
    },
    "technician": {
        "desc": "Works stages on assigned work orders.",
        "perms": frozenset({
            "customers.view", "variations.view",
            "work_orders.view", "work_orders.progress", "work_orders.submit_qa",
            "cases.view", "messages.send", "uploads.create",
        }),
    },
    "qa_inspector": {
        "desc": "Reviews finished work orders before invoicing.",
        "perms": frozenset({
            "customers.view", "variations.view",
            "work_orders.view", "qa.review",
            "cases.view", "messages.send", "uploads.create",
        }),
    },
    "accountant": {
        "desc": "Invoices, payments, expenses and payroll.",
        "perms": frozenset({
            "customers.view", "work_orders.view",
            "invoices.view", "invoices.generate", "invoices.record_payment", "invoices.void",
            "expenses.view", "expenses.manage",
            "payroll.view", "payroll.manage",
            "technicians.manage",
            "messages.send", "uploads.create",
        }),
    },
}

ROLES = tuple(ROLE_TEMPLATES)


def validate_permission_names(names: Iterable[str]) -> list[str]:
    names = list(names)
    unknown = sorted(set(names) - set(PERMISSIONS))
    if unknown:
        raise ValidationError(f"Unknown permissions: {', '.join(unknown)}")
    return names


def resolve_permissions(role: str, extra: Iterable[str] = ()) -> frozenset[str]:
    """Return the immutable set of permissions granted to ``role`` plus ``extra``."""
    template = ROLE_TEMPLATES.get(role)
    if template is None:
        raise ValidationError(f"Unknown role: {role}")
    return template["perms"] | frozenset(validate_permission_names(extra))
