"""CSV column mapping domain service.

A column mapping binds canonical row roles (date, counterparty, amount, ...)
to the header names of one export layout. Mappings come either from the
built-in template table or from the caller.
"""

from dataclasses import dataclass, field
from typing import Optional

from gstbooks.domain.csv_detect import BOM
from gstbooks.domain.errors import InvalidMapping, missing_roles
from gstbooks.domain.import_types import EXPENSE, INCOME, RECORD_KINDS

EXPENSE_ROLES = (
    "date",
    "counterparty",
    "amount",
    "tax",
    "biz_percent",
    "category",
    "description",
    "invoice_number",
)

INCOME_ROLES = (
    "date",
    "counterparty",
    "invoice_number",
    "subtotal",
    "tax",
    "total",
    "description",
)

# Names accepted in explicit mappings, lowercased
ROLE_ALIASES = {
    "client": "counterparty",
    "vendor": "counterparty",
    "provider": "counterparty",
    "item": "counterparty",
    "payee": "counterparty",
    "merchant": "counterparty",
    "gst": "tax",
    "tax_amount": "tax",
    "taxamount": "tax",
    "gross_amount": "amount",
    "grossamount": "amount",
    "bizpercent": "biz_percent",
    "biz%": "biz_percent",
    "business_use_percent": "biz_percent",
    "businessusepercent": "biz_percent",
    "invoice": "invoice_number",
    "invoicenum": "invoice_number",
    "invoice_num": "invoice_number",
    "invoicenumber": "invoice_number",
}

# Header synonyms for auto-detected mappings, lowercased
HEADER_SYNONYMS = {
    EXPENSE: {
        "date": ("date", "transaction date", "trans date"),
        "counterparty": ("item", "vendor", "merchant", "payee", "provider", "description"),
        "amount": ("total", "amount", "debit", "value", "price"),
        "tax": ("gst", "tax", "vat"),
        "biz_percent": ("biz%", "biz", "business", "business%", "business use"),
        "category": ("category", "cat", "type"),
        "description": ("description", "notes", "memo"),
    },
    INCOME: {
        "date": ("date", "invoice date", "issue date"),
        "counterparty": ("client", "customer"),
        "invoice_number": ("invoice #", "invoice", "invoice number", "invoice no"),
        "subtotal": ("subtotal", "sub total", "ex gst"),
        "tax": ("gst", "tax"),
        "total": ("total", "amount", "inc gst"),
        "description": ("description", "notes"),
    },
}


@dataclass(frozen=True)
class ColumnMapping:
    """Validated role -> column binding active for one import run."""

    kind: str
    columns: dict[str, str] = field(default_factory=dict)
    template: Optional[str] = None
    date_format: Optional[str] = None
    negate_amount: bool = False

    def column(self, role: str) -> Optional[str]:
        return self.columns.get(role)

    def has(self, role: str) -> bool:
        return bool(self.columns.get(role))


# Known export layouts. Data, not logic: add a layout by adding an entry.
TEMPLATES: dict[str, dict[str, ColumnMapping]] = {
    EXPENSE: {
        "custom": ColumnMapping(
            kind=EXPENSE,
            template="custom",
            columns={
                "date": "Date",
                "counterparty": "Item",
                "amount": "Total",
                "tax": "GST",
                "biz_percent": "Biz%",
                "category": "Category",
            },
            date_format="%d/%m/%Y",
        ),
        "commbank": ColumnMapping(
            kind=EXPENSE,
            template="commbank",
            columns={
                "date": "Date",
                "counterparty": "Description",
                "amount": "Debit",
                "description": "Description",
            },
            date_format="%d/%m/%Y",
            negate_amount=True,
        ),
        "amex": ColumnMapping(
            kind=EXPENSE,
            template="amex",
            columns={
                "date": "Date",
                "counterparty": "Description",
                "amount": "Amount",
                "description": "Description",
            },
            date_format="%d/%m/%Y",
        ),
    },
    INCOME: {
        "custom": ColumnMapping(
            kind=INCOME,
            template="custom",
            columns={
                "counterparty": "Client",
                "invoice_number": "Invoice #",
                "subtotal": "Subtotal",
                "tax": "GST",
                "total": "Total",
                "date": "Date",
                "description": "Description",
            },
            date_format="%d/%m/%Y",
        ),
    },
}


def _normalize_role(role: str) -> str:
    key = role.strip()
    lowered = key.lower()
    if lowered in ROLE_ALIASES:
        return ROLE_ALIASES[lowered]
    return lowered.replace(" ", "_")


def infer_kind(mapping: dict[str, str]) -> str:
    """Guess the record kind of an explicit mapping from its role names."""
    roles = {_normalize_role(role) for role in mapping}
    raw = {role.strip().lower() for role in mapping}
    if "client" in raw or roles & {"subtotal", "total"}:
        return INCOME
    return EXPENSE


class CSVFormatService:
    """Service for resolving and validating column mappings."""

    def list_templates(self, kind: Optional[str] = None) -> list[ColumnMapping]:
        """List built-in templates, optionally for one record kind.

        Args:
            kind: Optional "expense" or "income"

        Returns:
            List of template mappings ordered by kind then name
        """
        kinds = [kind] if kind else list(RECORD_KINDS)
        result = []
        for k in kinds:
            for name in sorted(TEMPLATES.get(k, {})):
                result.append(TEMPLATES[k][name])
        return result

    def get_template(self, kind: str, name: str) -> ColumnMapping:
        """Get a built-in template by kind and name.

        Raises:
            InvalidMapping: If no such template exists
        """
        templates = TEMPLATES.get(kind, {})
        template = templates.get(name.strip().lower())
        if template is None:
            raise InvalidMapping(
                f"Unknown {kind} template '{name}'. "
                f"Must be one of: {', '.join(sorted(templates))}"
            )
        return template

    def build_mapping(self, kind: str, mapping: dict[str, str]) -> ColumnMapping:
        """Build and validate a mapping from explicit role -> column pairs.

        Raises:
            InvalidMapping: If a role is unknown or required roles are missing
        """
        allowed = EXPENSE_ROLES if kind == EXPENSE else INCOME_ROLES
        columns: dict[str, str] = {}
        unknown = []
        for role, column in mapping.items():
            normalized = _normalize_role(role)
            if normalized not in allowed:
                unknown.append(role)
                continue
            if column and column.strip():
                columns[normalized] = column.strip()

        if unknown:
            raise InvalidMapping(
                f"Invalid {kind} column role(s): {', '.join(unknown)}. "
                f"Must be one of: {', '.join(allowed)}"
            )

        result = ColumnMapping(kind=kind, columns=columns)
        self.validate_mapping(result)
        return result

    def resolve_mapping(
        self,
        kind: str,
        source: Optional[str] = None,
        mapping: Optional[dict[str, str]] = None,
    ) -> ColumnMapping:
        """Resolve the mapping for a run: explicit mapping wins over a template.

        Args:
            kind: "expense" or "income"
            source: Built-in template name
            mapping: Explicit role -> column mapping

        Raises:
            InvalidMapping: If neither is given, the template is unknown, or
                required roles are missing
        """
        if kind not in RECORD_KINDS:
            raise InvalidMapping(f"Invalid record kind '{kind}'. Must be expense or income")
        if mapping:
            return self.build_mapping(kind, mapping)
        if source:
            return self.get_template(kind, source)
        raise InvalidMapping("No column mapping provided and no template selected")

    def required_roles_missing(self, mapping: ColumnMapping) -> list[str]:
        """Return required roles the mapping does not bind."""
        missing = []
        if not mapping.has("date"):
            missing.append("date")
        if mapping.kind == EXPENSE:
            if not mapping.has("amount"):
                missing.append("amount")
            if not (mapping.has("counterparty") or mapping.has("description")):
                missing.append("counterparty")
        else:
            if not mapping.has("counterparty"):
                missing.append("counterparty")
            has_split = mapping.has("subtotal") and mapping.has("tax")
            if not (has_split or mapping.has("total")):
                missing.append("subtotal+tax or total")
        return missing

    def validate_mapping(self, mapping: ColumnMapping) -> None:
        """Check that a mapping binds every required role.

        Raises:
            InvalidMapping: Listing the missing roles
        """
        missing = self.required_roles_missing(mapping)
        if missing:
            raise InvalidMapping(missing_roles(mapping.kind, missing), missing=missing)

    def validate_headers(self, mapping: ColumnMapping, headers: list[str]) -> None:
        """Check that the columns of required roles exist in the file.

        Optional roles whose column is absent are simply read as blank.

        Raises:
            InvalidMapping: If required columns are missing from the header row
        """
        present = {h.strip().lstrip(BOM).strip().lower() for h in headers}
        if mapping.kind == EXPENSE:
            required = ["date", "amount"]
            required.append("counterparty" if mapping.has("counterparty") else "description")
        elif mapping.has("subtotal") and mapping.has("tax"):
            required = ["date", "counterparty", "subtotal", "tax"]
        else:
            required = ["date", "counterparty", "total"]

        missing_columns = [
            mapping.columns[role]
            for role in required
            if mapping.has(role) and mapping.columns[role].strip().lower() not in present
        ]
        if missing_columns:
            raise InvalidMapping(
                f"CSV file missing required columns: {', '.join(missing_columns)}",
                missing=missing_columns,
            )

    def detect_mapping(self, kind: str, headers: list[str]) -> ColumnMapping:
        """Auto-map headers onto roles using known header synonyms.

        Raises:
            InvalidMapping: If required roles cannot be found in the headers
        """
        by_lower = {}
        for header in headers:
            by_lower.setdefault(header.strip().lower(), header.strip())

        columns: dict[str, str] = {}
        used: set[str] = set()
        for role, synonyms in HEADER_SYNONYMS.get(kind, {}).items():
            for synonym in synonyms:
                header = by_lower.get(synonym)
                # description may share its column with counterparty
                if header and (header not in used or role == "description"):
                    columns[role] = header
                    used.add(header)
                    break

        result = ColumnMapping(kind=kind, columns=columns)
        self.validate_mapping(result)
        return result
