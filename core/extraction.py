"""
Template-driven field extraction.

Each template field is a regular expression with exactly one named group
whose name equals the field name, e.g. ``on (?P<date>[0-9]{8})``. Patterns
are compiled once per template (multi-line mode) and matched with a time
budget so a pathological pattern or message cannot stall a worker.

Field policy:
- required field, no match or empty group -> MissingRequiredField
- optional field, no match or empty group -> ""
- a match timeout counts as "no match" for the policy above
"""
from typing import Dict, Optional, Tuple, Union

import regex

from core.exceptions import MissingRequiredField, PatternCompileError, PatternTimeout
from core.logger import setup_logger
from core.schema import Template, Transaction

logger = setup_logger(__name__)

DEFAULT_MATCH_TIMEOUT = 5.0

# (transaction attribute, named group, template pattern attribute, required)
# Order matters: extraction stops at the first failing required field.
FIELD_SPECS: Tuple[Tuple[str, str, str, bool], ...] = (
    ("vendor_reference_id", "vendorReferenceId", "vendor_reference_id_pattern", True),
    ("amount", "amount", "amount_pattern", True),
    ("date", "date", "date_pattern", True),
    ("transaction_reference_id", "transactionReferenceId", "transaction_reference_id_pattern", False),
    ("account_number", "accountNumber", "account_number_pattern", False),
    ("currency", "currency", "currency_pattern", False),
)


def compile_field_pattern(field_name: str, pattern: str) -> regex.Pattern:
    """
    Compile a field pattern and check it captures ``field_name``.

    Raises:
        PatternCompileError: If the pattern is malformed or lacks the named group
    """
    try:
        compiled = regex.compile(pattern, regex.MULTILINE)
    except regex.error as e:
        raise PatternCompileError(
            f"pattern for field {field_name} does not compile: {e}",
            details={"field": field_name, "pattern": pattern},
        )

    if field_name not in compiled.groupindex:
        raise PatternCompileError(
            f"pattern for field {field_name} has no named group '{field_name}'",
            details={"field": field_name, "pattern": pattern},
        )
    return compiled


def _search(compiled: regex.Pattern, text: str, field_name: str, timeout: float):
    try:
        return compiled.search(text, timeout=timeout)
    except TimeoutError:
        raise PatternTimeout(
            f"pattern for field {field_name} timed out after {timeout}s",
            details={"field": field_name, "timeout": timeout},
        )


def extract_field(
    text: str,
    field_name: str,
    pattern: Union[str, regex.Pattern, None],
    required: bool,
    timeout: float = DEFAULT_MATCH_TIMEOUT,
    template_name: Optional[str] = None,
) -> str:
    """
    Extract one named field from message text.

    Args:
        text: Message body
        field_name: Named group to read, also used in error messages
        pattern: Raw pattern string or a pattern from ``compile_field_pattern``.
            An empty pattern means "not configured" and is only allowed for
            optional fields.
        required: Whether a missing value is an error
        timeout: Match time budget in seconds
        template_name: Used for log and error context only

    Returns:
        The captured text verbatim, or "" for an absent optional field

    Raises:
        PatternCompileError: If a raw pattern is malformed
        MissingRequiredField: If a required field is absent, empty or timed out
    """
    context = {"field": field_name, "template": template_name}

    if isinstance(pattern, str) or pattern is None:
        if not pattern:
            if required:
                raise PatternCompileError(f"no pattern configured for required field {field_name}", details=context)
            return ""
        pattern = compile_field_pattern(field_name, pattern)

    try:
        match = _search(pattern, text, field_name, timeout)
    except PatternTimeout as e:
        logger.warning(f"[{template_name}] {e.message}; treating as no match")
        if required:
            raise MissingRequiredField(
                f"missing required field {field_name} (match timed out)",
                details={**context, "timed_out": True},
            ) from e
        return ""

    value = match.group(field_name) if match is not None else None
    if not value:
        if required:
            reason = "pattern did not match" if match is None else "captured group is empty"
            raise MissingRequiredField(
                f"missing required field {field_name}: {reason}",
                details=context,
            )
        return ""

    return value


class CompiledTemplate:
    """A template with its field patterns compiled once at load time."""

    def __init__(self, template: Template):
        self.template = template
        self.patterns: Dict[str, Optional[regex.Pattern]] = {}

        for _, group, pattern_attr, required in FIELD_SPECS:
            raw = getattr(template, pattern_attr)
            if not raw and not required:
                self.patterns[group] = None
                continue
            if not raw:
                raise PatternCompileError(
                    f"template {template.template_name} has no pattern for required field {group}",
                    details={"template": template.template_name, "field": group},
                )
            try:
                self.patterns[group] = compile_field_pattern(group, raw)
            except PatternCompileError as e:
                raise PatternCompileError(
                    f"template {template.template_name}: {e.message}",
                    details={**e.details, "template": template.template_name},
                )

    @property
    def template_name(self) -> str:
        return self.template.template_name

    @property
    def sender_email(self) -> str:
        return self.template.sender_email

    def __repr__(self) -> str:
        return f"CompiledTemplate({self.template_name!r}, sender={self.sender_email!r})"


def extract_transaction(
    text: str,
    compiled: CompiledTemplate,
    timeout: float = DEFAULT_MATCH_TIMEOUT,
) -> Transaction:
    """
    Run all field extractions in fixed order and build a Transaction.

    Raises:
        MissingRequiredField: On the first required field that fails;
            values extracted before it are discarded
    """
    values: Dict[str, str] = {}
    for attr, group, _, required in FIELD_SPECS:
        values[attr] = extract_field(
            text,
            group,
            compiled.patterns[group] or "",
            required,
            timeout=timeout,
            template_name=compiled.template_name,
        )
        logger.debug(f"[{compiled.template_name}] {group} = {values[attr]!r}")

    return Transaction(template_name=compiled.template_name, **values)
